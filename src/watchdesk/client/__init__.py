"""Client module - Authenticated transport and API wrappers."""

from watchdesk.client.api import (
    AuthAPI,
    FilesAPI,
    MatchingAPI,
    TasksAPI,
    UsersAPI,
    WatchdeskAPI,
    WatchlistsAPI,
)
from watchdesk.client.credentials import CredentialStore
from watchdesk.client.notifications import (
    ConsoleNotifier,
    LogNotifier,
    Notification,
    NotificationType,
    Notifier,
    notify_error,
)
from watchdesk.client.session import SessionCoordinator
from watchdesk.client.transport import (
    APIError,
    AuthenticatedTransport,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ProgressReader,
    SessionExpiredError,
    TransportError,
)

__all__ = [
    # API
    "AuthAPI",
    "FilesAPI",
    "MatchingAPI",
    "TasksAPI",
    "UsersAPI",
    "WatchdeskAPI",
    "WatchlistsAPI",
    # Credentials / session
    "CredentialStore",
    "SessionCoordinator",
    # Notifications
    "ConsoleNotifier",
    "LogNotifier",
    "Notification",
    "NotificationType",
    "Notifier",
    "notify_error",
    # Transport
    "APIError",
    "AuthenticatedTransport",
    "AuthenticationError",
    "ConflictError",
    "NotFoundError",
    "ProgressReader",
    "SessionExpiredError",
    "TransportError",
]
