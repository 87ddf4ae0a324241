"""Typed wrappers for the watchdesk API.

This module provides:
- WatchdeskAPI: one object bundling every endpoint group
- AuthAPI, FilesAPI, TasksAPI, MatchingAPI, WatchlistsAPI, UsersAPI

All calls go through the shared AuthenticatedTransport, so they carry the
bearer token and benefit from transparent token refresh.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from watchdesk.client.models import (
    AuthResponse,
    FileItem,
    FileListResponse,
    TokenRefreshResponse,
    User,
)
from watchdesk.client.transport import APIError, AuthenticatedTransport, ProgressReader

logger = logging.getLogger(__name__)


def _page_params(page: int | None, per_page: int | None) -> dict[str, int]:
    params = {}
    if page is not None:
        params["page"] = page
    if per_page is not None:
        params["per_page"] = per_page
    return params


class AuthAPI:
    """Login, logout and token endpoints."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    async def login(self, username: str, password: str, remember_me: bool = False) -> AuthResponse:
        """Log in and persist the returned tokens.

        Args:
            username: Account name.
            password: Account password.
            remember_me: Ask the server for a long-lived session.

        Returns:
            Tokens and the user profile.
        """
        response = await self._transport.post(
            "/auth/login",
            json={"username": username, "password": password, "remember_me": remember_me},
            refresh_on_401=False,
        )
        auth = AuthResponse.model_validate(response.json())
        self._remember(auth)
        logger.info(f"Logged in as {auth.user.username}")
        return auth

    async def register(self, **fields: Any) -> AuthResponse:
        """Create an account and log in with it."""
        response = await self._transport.post(
            "/auth/register", json=fields, refresh_on_401=False
        )
        auth = AuthResponse.model_validate(response.json())
        self._remember(auth)
        return auth

    async def refresh(self, refresh_token: str) -> TokenRefreshResponse:
        response = await self._transport.post(
            "/auth/refresh", json={"refresh_token": refresh_token}, refresh_on_401=False
        )
        return TokenRefreshResponse.model_validate(response.json())

    async def logout(self) -> None:
        """Revoke the refresh token and forget local credentials.

        Local credentials are cleared even if the server call fails.
        """
        credentials = self._transport.credentials
        try:
            await self._transport.post(
                "/auth/logout",
                json={"refresh_token": credentials.refresh_token or ""},
                quiet=True,
                refresh_on_401=False,
            )
        except APIError as e:
            logger.error(f"Logout API call failed: {e}")
        finally:
            credentials.clear()
            self._transport.remove_auth_token()

    async def me(self) -> User:
        response = await self._transport.get("/auth/me")
        return User.model_validate(response.json())

    def _remember(self, auth: AuthResponse) -> None:
        self._transport.credentials.save(
            access_token=auth.access_token,
            refresh_token=auth.refresh_token,
            user=auth.user.model_dump(mode="json"),
        )
        self._transport.set_auth_token(auth.access_token)


class FilesAPI:
    """File upload, listing and download."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    @property
    def chunk_size(self) -> int:
        """Default chunk size for large uploads."""
        return self._transport.config.chunk_size

    @property
    def chunk_timeout(self) -> float:
        """Timeout for one chunk of a chunked upload."""
        return self._transport.config.chunk_timeout

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
        fields: dict[str, str] | None = None,
        on_progress: Callable[[int], None] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a file (or one chunk of it) as multipart form data.

        Args:
            content: Bytes to send in the ``file`` field.
            filename: Name reported for the file field.
            content_type: MIME type of the content.
            fields: Extra form fields (chunk metadata).
            on_progress: Receives 0-100 as the body is sent.
            timeout: Request timeout; defaults to the upload timeout.

        Returns:
            Server acknowledgement as a dictionary.
        """
        body = ProgressReader(content, on_progress)
        response = await self._transport.post(
            "/files/upload",
            files={"file": (filename, body, content_type)},
            data=fields or {},
            timeout=timeout or self._transport.config.upload_timeout,
        )
        result: dict[str, Any] = response.json()
        return result

    async def list(self, page: int | None = None, per_page: int | None = None) -> FileListResponse:
        response = await self._transport.get("/files", params=_page_params(page, per_page))
        return FileListResponse.model_validate(response.json())

    async def get(self, file_id: str) -> FileItem:
        response = await self._transport.get(f"/files/{file_id}")
        return FileItem.model_validate(response.json())

    async def download(self, file_id: str) -> bytes:
        response = await self._transport.get(f"/files/download/{file_id}")
        return response.content

    async def delete(self, file_id: str) -> None:
        await self._transport.delete(f"/files/{file_id}")

    async def cancel_chunked(self, upload_id: str) -> None:
        """Ask the server to discard the chunks received for an upload."""
        await self._transport.delete(f"/files/chunked/{upload_id}", quiet=True)


class TasksAPI:
    """Matching tasks built from uploaded files."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    async def create(self, **fields: Any) -> dict[str, Any]:
        response = await self._transport.post("/task", json=fields)
        return dict(response.json())

    async def list(self, page: int | None = None, per_page: int | None = None) -> dict[str, Any]:
        response = await self._transport.get("/task", params=_page_params(page, per_page))
        return dict(response.json())

    async def get(self, task_id: str) -> dict[str, Any]:
        response = await self._transport.get(f"/task/{task_id}")
        return dict(response.json())

    async def delete(self, task_id: str) -> None:
        await self._transport.delete(f"/task/{task_id}")

    async def current_processing(self) -> dict[str, Any]:
        response = await self._transport.get("/task/current-processing")
        return dict(response.json())


class MatchingAPI:
    """Fuzzy-name search; the matching itself runs on the server."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    async def columns(self, task_id: str) -> dict[str, Any]:
        response = await self._transport.get(f"/matching/columns/{task_id}")
        return dict(response.json())

    async def search(self, **criteria: Any) -> dict[str, Any]:
        response = await self._transport.post("/matching/search", json=criteria)
        return dict(response.json())

    async def bulk_search(self, **criteria: Any) -> dict[str, Any]:
        response = await self._transport.post("/matching/bulk-search", json=criteria)
        return dict(response.json())

    async def search_status(self, search_id: str) -> dict[str, Any]:
        response = await self._transport.get(f"/matching/search-result/{search_id}")
        return dict(response.json())

    async def history(self, page: int | None = None, per_page: int | None = None) -> dict[str, Any]:
        response = await self._transport.get(
            "/matching/history", params=_page_params(page, per_page)
        )
        return dict(response.json())

    async def result(self, search_id: str) -> dict[str, Any]:
        response = await self._transport.get(f"/matching/result/{search_id}")
        return dict(response.json())


class WatchlistsAPI:
    """Watchlists and their items."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    async def list(self, page: int | None = None, per_page: int | None = None) -> dict[str, Any]:
        response = await self._transport.get("/watchlist", params=_page_params(page, per_page))
        return dict(response.json())

    async def create(self, **fields: Any) -> dict[str, Any]:
        response = await self._transport.post("/watchlist", json=fields)
        return dict(response.json())

    async def get(self, watchlist_id: str) -> dict[str, Any]:
        response = await self._transport.get(f"/watchlist/{watchlist_id}")
        return dict(response.json())

    async def update(self, watchlist_id: str, **fields: Any) -> dict[str, Any]:
        response = await self._transport.put(f"/watchlist/{watchlist_id}", json=fields)
        return dict(response.json())

    async def delete(self, watchlist_id: str) -> None:
        await self._transport.delete(f"/watchlist/{watchlist_id}")

    async def add_item(self, watchlist_id: str, **fields: Any) -> dict[str, Any]:
        response = await self._transport.post(f"/watchlist/{watchlist_id}/items", json=fields)
        return dict(response.json())

    async def update_item(self, watchlist_id: str, item_id: str, **fields: Any) -> dict[str, Any]:
        response = await self._transport.put(
            f"/watchlist/{watchlist_id}/items/{item_id}", json=fields
        )
        return dict(response.json())

    async def delete_item(self, watchlist_id: str, item_id: str) -> None:
        await self._transport.delete(f"/watchlist/{watchlist_id}/items/{item_id}")

    async def match(self, **criteria: Any) -> dict[str, Any]:
        response = await self._transport.post("/watchlist/match", json=criteria)
        return dict(response.json())


class UsersAPI:
    """Profile and account management for the current user."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    async def profile(self) -> dict[str, Any]:
        response = await self._transport.get("/user/profile")
        return dict(response.json())

    async def update_profile(self, **fields: Any) -> dict[str, Any]:
        response = await self._transport.put("/user/profile", json=fields)
        return dict(response.json())

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self._transport.post(
            "/user/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )

    async def activity(self, page: int | None = None, per_page: int | None = None) -> dict[str, Any]:
        response = await self._transport.get("/user/activity", params=_page_params(page, per_page))
        return dict(response.json())

    async def stats(self) -> dict[str, Any]:
        response = await self._transport.get("/user/stats")
        return dict(response.json())


class WatchdeskAPI:
    """All endpoint groups sharing one transport."""

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self.transport = transport
        self.auth = AuthAPI(transport)
        self.files = FilesAPI(transport)
        self.tasks = TasksAPI(transport)
        self.matching = MatchingAPI(transport)
        self.watchlists = WatchlistsAPI(transport)
        self.users = UsersAPI(transport)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> WatchdeskAPI:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
