"""Authenticated HTTP transport for the watchdesk API.

This module provides:
- AuthenticatedTransport: shared async HTTP client that attaches bearer
  credentials, refreshes an expired access token once for all concurrent
  callers and replays the requests that failed with 401
- ProgressReader: file-like body that reports how much of it was sent
- APIError and subclasses for failed requests
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Callable
from typing import Any

import httpx

from watchdesk.client.credentials import CredentialStore
from watchdesk.client.notifications import LogNotifier, Notifier, notify_error
from watchdesk.client.session import SessionCoordinator
from watchdesk.core.config import ClientConfig

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Request rejected with 401 even after a token refresh."""


class SessionExpiredError(AuthenticationError):
    """The refresh exchange failed; the user has to log in again."""


class NotFoundError(APIError):
    """Resource not found."""


class ConflictError(APIError):
    """Request conflicts with the current server state."""


class TransportError(APIError):
    """Network-level failure (connection refused, timeout, ...)."""


class ProgressReader(io.BytesIO):
    """In-memory upload body that reports send progress.

    httpx reads multipart file fields in small blocks; every read moves the
    reported percentage forward. Seeking back to the start (a replayed
    request) starts reporting again from zero.
    """

    def __init__(self, data: bytes, on_progress: Callable[[int], None] | None = None) -> None:
        super().__init__(data)
        self._total = len(data)
        self._on_progress = on_progress
        self._last_reported = -1

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        position = super().seek(offset, whence)
        if position == 0:
            self._last_reported = -1
        return position

    def read(self, size: int | None = -1) -> bytes:
        data = super().read(size)
        if self._on_progress is not None:
            if self._total == 0:
                percent = 100
            else:
                percent = self.tell() * 100 // self._total
            if percent != self._last_reported:
                self._last_reported = percent
                self._on_progress(percent)
        return data


def _error_message(response: httpx.Response) -> str | None:
    """Extract a human-readable message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase or None


class AuthenticatedTransport:
    """Shared HTTP client for every API call.

    Every request is intercepted twice: before sending, the stored access
    token is attached as a bearer header; after a 401, the token is
    refreshed (once, however many requests failed) and the request is
    replayed. When the refresh itself fails, stored credentials are wiped
    and on_session_expired is called.
    """

    def __init__(
        self,
        config: ClientConfig,
        credentials: CredentialStore,
        session: SessionCoordinator | None = None,
        notifier: Notifier | None = None,
        on_session_expired: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Server URL and timeouts.
            credentials: Where access and refresh tokens are stored.
            session: Refresh coordinator (a fresh one when omitted).
            notifier: Receives user-visible error messages.
            on_session_expired: Called once when the session cannot be
                refreshed (the "go to login" hook).
            transport: Optional httpx transport (used by tests).
        """
        self._config = config
        self._credentials = credentials
        self._session = session or SessionCoordinator()
        self._notifier = notifier or LogNotifier()
        self._on_session_expired = on_session_expired
        self._client = httpx.AsyncClient(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            transport=transport,
        )
        if credentials.access_token:
            self.set_auth_token(credentials.access_token)

    @property
    def config(self) -> ClientConfig:
        """Connection settings."""
        return self._config

    @property
    def credentials(self) -> CredentialStore:
        """Credential storage used for every request."""
        return self._credentials

    @property
    def session(self) -> SessionCoordinator:
        """Refresh coordinator shared by this transport's requests."""
        return self._session

    @property
    def client(self) -> httpx.AsyncClient:
        """Underlying httpx client."""
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AuthenticatedTransport:
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.aclose()

    # === Default credentials ===

    def set_auth_token(self, token: str) -> None:
        """Make token the default bearer credential and mirror it in a cookie."""
        self._client.headers["Authorization"] = f"Bearer {token}"
        self._client.cookies.set(ACCESS_TOKEN_COOKIE, token)

    def remove_auth_token(self) -> None:
        """Drop the default bearer credential and its cookie."""
        self._client.headers.pop("Authorization", None)
        self._client.cookies.delete(ACCESS_TOKEN_COOKIE)

    # === Requests ===

    async def request(
        self,
        method: str,
        url: str,
        quiet: bool = False,
        refresh_on_401: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request through the authentication interceptors.

        Args:
            method: HTTP method.
            url: Path relative to the server URL.
            quiet: Do not notify the user on failure (the error is still raised).
            refresh_on_401: Refresh the token and replay on 401 (disable for
                login, where 401 means bad credentials).
            **kwargs: Passed to httpx (json, data, files, params, timeout...).

        Returns:
            The successful response.

        Raises:
            APIError: If the request ultimately failed.
        """
        return await self._send(
            method, url, kwargs, retried=not refresh_on_401, quiet=quiet
        )

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    def _build_request(
        self, method: str, url: str, kwargs: dict[str, Any], token: str | None
    ) -> httpx.Request:
        request = self._client.build_request(method, url, **kwargs)
        token = token or self._credentials.access_token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return request

    async def _send(
        self,
        method: str,
        url: str,
        kwargs: dict[str, Any],
        retried: bool,
        quiet: bool,
        token: str | None = None,
    ) -> httpx.Response:
        request = self._build_request(method, url, kwargs, token)
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            message = str(e) or type(e).__name__
            if not quiet:
                notify_error(self._notifier, message)
            raise TransportError(message) from e

        if response.is_success:
            return response

        if response.status_code != 401:
            self._raise_for_status(response, quiet)

        if retried:
            raise AuthenticationError("Invalid or expired token", 401)

        if not self._session.begin_refresh():
            # Another request is already refreshing; wait for its outcome
            new_token = await self._session.wait_for_refresh()
            return await self._send(
                method, url, kwargs, retried=True, quiet=quiet, token=new_token
            )

        try:
            new_token = await self._refresh()
        except asyncio.CancelledError:
            # Credentials are untouched; queued requests fail but must not hang
            self._session.reject_waiters(
                AuthenticationError("Token refresh was cancelled", 401)
            )
            raise
        except Exception as e:
            error = e if isinstance(e, SessionExpiredError) else SessionExpiredError(
                f"Session expired: {e}", 401
            )
            self._session.reject_waiters(error)
            self._expire_session()
            if error is e:
                raise
            raise error from e
        else:
            self._session.resolve_waiters(new_token)
        finally:
            self._session.end_refresh()

        return await self._send(method, url, kwargs, retried=True, quiet=quiet, token=new_token)

    def _raise_for_status(self, response: httpx.Response, quiet: bool) -> None:
        message = _error_message(response)
        if not quiet:
            notify_error(self._notifier, message)
        text = message or f"HTTP {response.status_code}"
        if response.status_code == 404:
            raise NotFoundError(text, 404)
        if response.status_code == 409:
            raise ConflictError(text, 409)
        raise APIError(text, response.status_code)

    async def _refresh(self) -> str:
        """Exchange the refresh token for a new access token.

        The refresh call bypasses the interceptors: a 401 here is final.
        """
        refresh_token = self._credentials.refresh_token
        if not refresh_token:
            raise SessionExpiredError("No refresh token available", 401)

        logger.debug("Access token rejected, refreshing")
        try:
            response = await self._client.post(
                self._config.refresh_url,
                json={"refresh_token": refresh_token},
            )
        except httpx.HTTPError as e:
            raise SessionExpiredError(f"Token refresh failed: {e}", 401) from e
        if not response.is_success:
            raise SessionExpiredError(
                f"Token refresh failed: {_error_message(response) or response.status_code}",
                response.status_code,
            )

        try:
            access_token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise SessionExpiredError("Token refresh returned no access token", 401) from e

        self._credentials.set_access_token(access_token)
        self.set_auth_token(access_token)
        logger.info("Access token refreshed")
        return str(access_token)

    def _expire_session(self) -> None:
        """Wipe credentials and send the user back to login."""
        logger.warning("Session expired, clearing stored credentials")
        self._credentials.clear()
        self.remove_auth_token()
        if self._on_session_expired is not None:
            self._on_session_expired()
