"""Shared token-refresh coordination.

This module provides:
- SessionCoordinator: the refresh-in-flight flag and the queue of requests
  waiting for the refresh outcome
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """Single-flight guard for credential refresh.

    One instance is shared by every request of a session. At most one
    refresh is in flight; requests that hit a 401 meanwhile wait for its
    outcome instead of starting their own.

    begin_refresh() is synchronous, so checking and setting the flag can
    never be interleaved with another task on the event loop.
    """

    def __init__(self) -> None:
        self._refreshing = False
        self._waiters: deque[asyncio.Future[str]] = deque()

    @property
    def is_refreshing(self) -> bool:
        """True while a refresh exchange is in flight."""
        return self._refreshing

    @property
    def waiter_count(self) -> int:
        """Number of requests queued behind the current refresh."""
        return len(self._waiters)

    def begin_refresh(self) -> bool:
        """Claim the refresh slot.

        Returns:
            True if the caller must perform the refresh, False if one is
            already in flight.
        """
        if self._refreshing:
            return False
        self._refreshing = True
        return True

    def end_refresh(self) -> None:
        """Release the refresh slot."""
        self._refreshing = False

    async def wait_for_refresh(self) -> str:
        """Wait for the in-flight refresh and return the new access token.

        Raises:
            Exception: Whatever the refresh failed with.
        """
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        return await future

    def resolve_waiters(self, token: str) -> None:
        """Wake every queued request with the new access token."""
        waiters, self._waiters = self._waiters, deque()
        logger.debug(f"Resolving {len(waiters)} request(s) waiting on refresh")
        for future in waiters:
            if not future.done():
                future.set_result(token)

    def reject_waiters(self, error: BaseException) -> None:
        """Fail every queued request with the refresh error."""
        waiters, self._waiters = self._waiters, deque()
        logger.debug(f"Rejecting {len(waiters)} request(s) waiting on refresh")
        for future in waiters:
            if not future.done():
                future.set_exception(error)
