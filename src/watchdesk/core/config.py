"""Shared configuration classes for watchdesk.

This module defines the connection settings used by the HTTP transport,
the API wrappers and the uploader.
"""

from __future__ import annotations

from dataclasses import dataclass

from watchdesk.core.chunking import DEFAULT_CHUNK_SIZE


@dataclass
class ClientConfig:
    """Configuration for connecting to a watchdesk API server.

    Attributes:
        server_url: Base URL of the API (e.g., "https://api.example.com").
        timeout: Default per-request timeout in seconds.
        upload_timeout: Timeout for whole-file uploads in seconds.
        chunk_timeout: Timeout for a single chunk upload in seconds.
        chunk_size: Default chunk size in bytes for large uploads.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    timeout: float = 30.0
    upload_timeout: float = 60.0
    chunk_timeout: float = 600.0
    chunk_size: int = DEFAULT_CHUNK_SIZE
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def refresh_url(self) -> str:
        """Absolute URL of the token refresh endpoint."""
        return f"{self.server_url}/auth/refresh"

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")
