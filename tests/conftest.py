"""Shared fixtures for watchdesk tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from watchdesk.client.credentials import CredentialStore
from watchdesk.client.notifications import Notification
from watchdesk.client.session import SessionCoordinator
from watchdesk.client.transport import AuthenticatedTransport
from watchdesk.core.config import ClientConfig

SERVER_URL = "http://test"


class RecordingNotifier:
    """Notifier that keeps every notification for assertions."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def send(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def messages(self) -> list[str]:
        return [n.message for n in self.notifications]


@pytest.fixture
def config() -> ClientConfig:
    """Client configuration pointing at the mocked server."""
    return ClientConfig(server_url=SERVER_URL)


@pytest.fixture
def credentials() -> CredentialStore:
    """In-memory credentials for a logged-in user."""
    store = CredentialStore()
    store.save(access_token="old-token", refresh_token="refresh-123")
    return store


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_transport(
    config: ClientConfig,
    credentials: CredentialStore,
    notifier: RecordingNotifier,
) -> Callable[..., AuthenticatedTransport]:
    """Build a transport, optionally backed by an httpx.MockTransport handler."""

    def factory(
        handler: Callable[[httpx.Request], Any] | None = None,
        **kwargs: Any,
    ) -> AuthenticatedTransport:
        kwargs.setdefault("session", SessionCoordinator())
        kwargs.setdefault("notifier", notifier)
        return AuthenticatedTransport(
            config,
            credentials,
            transport=httpx.MockTransport(handler) if handler else None,
            **kwargs,
        )

    return factory
