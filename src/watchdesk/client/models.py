"""Pydantic models for watchdesk API payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

FileStatus = Literal["pending", "processing", "completed", "failed"]


class User(BaseModel):
    """Account as returned by /auth/me and /auth/login."""

    model_config = ConfigDict(extra="allow")

    id: str
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    is_staff: bool = False
    is_superuser: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None


class AuthResponse(BaseModel):
    """Response to login and register."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    user: User


class TokenRefreshResponse(BaseModel):
    """Response to POST /auth/refresh."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class FileItem(BaseModel):
    """Uploaded file metadata."""

    model_config = ConfigDict(extra="allow")

    id: str
    filename: str
    original_filename: str | None = None
    file_path: str | None = None
    file_size: int
    file_type: str | None = None
    status: FileStatus = "pending"
    uploaded_by: str | None = None
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None
    error_message: str | None = None
    metadata: dict[str, Any] | None = None


class FileListResponse(BaseModel):
    """Page of files from GET /files."""

    files: list[FileItem]
    total: int
    page: int
    per_page: int
    total_pages: int
