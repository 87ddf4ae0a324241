"""User-facing notifications for watchdesk.

This module provides:
- Notification / NotificationType: what to show the user
- Notifier: protocol implemented by notification sinks
- ConsoleNotifier: styled stderr output for the CLI
- notify_error: shortcut for request failures
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

import click

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred"


class NotificationType(Enum):
    """Type of notification."""

    INFO = auto()
    SUCCESS = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class Notification:
    """Represents a notification to display."""

    message: str
    type: NotificationType = NotificationType.INFO
    title: str = "watchdesk"


class Notifier(Protocol):
    """Anything that can show a notification to the user."""

    def send(self, notification: Notification) -> None: ...


_STYLES = {
    NotificationType.INFO: {},
    NotificationType.SUCCESS: {"fg": "green"},
    NotificationType.WARNING: {"fg": "yellow"},
    NotificationType.ERROR: {"fg": "red", "bold": True},
}


class ConsoleNotifier:
    """Print notifications to stderr with click styling."""

    def __init__(self, quiet: bool = False) -> None:
        self._quiet = quiet

    def send(self, notification: Notification) -> None:
        if self._quiet and notification.type is not NotificationType.ERROR:
            return
        click.secho(notification.message, err=True, **_STYLES[notification.type])


class LogNotifier:
    """Route notifications to the log (used when no UI is attached)."""

    def send(self, notification: Notification) -> None:
        if notification.type is NotificationType.ERROR:
            logger.error(notification.message)
        elif notification.type is NotificationType.WARNING:
            logger.warning(notification.message)
        else:
            logger.info(notification.message)


def notify_error(notifier: Notifier, message: str | None) -> None:
    """Send an error notification, falling back to a generic message.

    Args:
        notifier: Where to send the notification.
        message: Error message (empty values use the fallback text).
    """
    notifier.send(Notification(
        message=message or DEFAULT_ERROR_MESSAGE,
        type=NotificationType.ERROR,
    ))
