"""Persisted client credentials.

This module provides:
- CredentialStore: access token, refresh token and cached user profile,
  stored as a small JSON file readable only by the owner
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CREDENTIALS_FILE_NAME = "credentials.json"


class CredentialStore:
    """Access and refresh tokens kept between CLI invocations.

    Values are re-read from disk on every access so that a token refreshed
    by one process is picked up by another. A store created without a path
    only keeps values in memory.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = {}

    @property
    def path(self) -> Path | None:
        """Location of the credentials file, if persisted."""
        return self._path

    def _load(self) -> dict[str, Any]:
        if self._path is None:
            return self._data
        if not self._path.exists():
            return {}
        try:
            return dict(json.loads(self._path.read_text()))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self._path}: {e}")
            return {}

    def _store(self, data: dict[str, Any]) -> None:
        if self._path is None:
            self._data = data
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2))
        os.chmod(self._path, 0o600)

    @property
    def access_token(self) -> str | None:
        """Current access token, or None when logged out."""
        return self._load().get("access_token")

    @property
    def refresh_token(self) -> str | None:
        """Current refresh token, or None when logged out."""
        return self._load().get("refresh_token")

    @property
    def user(self) -> dict[str, Any] | None:
        """Cached profile of the logged-in user."""
        return self._load().get("user")

    def save(
        self,
        access_token: str,
        refresh_token: str | None = None,
        user: dict[str, Any] | None = None,
    ) -> None:
        """Store credentials after login.

        Args:
            access_token: New access token.
            refresh_token: New refresh token (kept unchanged when None).
            user: User profile to cache (kept unchanged when None).
        """
        data = self._load()
        data["access_token"] = access_token
        if refresh_token is not None:
            data["refresh_token"] = refresh_token
        if user is not None:
            data["user"] = user
        self._store(data)

    def set_access_token(self, token: str) -> None:
        """Replace only the access token (after a refresh)."""
        self.save(access_token=token)

    def clear(self) -> None:
        """Forget all stored credentials."""
        self._data = {}
        if self._path is not None and self._path.exists():
            self._path.unlink()
