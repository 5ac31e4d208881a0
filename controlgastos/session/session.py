"""
Session Context

A Session is the explicit replacement for a global "current user".
It is created at sign-in, handed to every view controller, and
invalidated at sign-out.

Every request made on behalf of a session is run through `Session.run`,
so invalidating the session cancels everything still in flight.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

import structlog

from controlgastos.models.finance import AuthGrant, UserIdentity
from controlgastos.errors import SessionExpiredError


T = TypeVar("T")

logger = structlog.get_logger(__name__)


class Session:
    """
    An authenticated session.

    The token and identity never change for the lifetime of the object.
    """

    def __init__(self, access_token: str, user: UserIdentity, refresh_token: Optional[str] = None):
        self.access_token = access_token
        self.user = user
        self.refresh_token = refresh_token
        self._active = True
        self._pending: set[asyncio.Future] = set()

    @classmethod
    def from_grant(cls, grant: AuthGrant) -> "Session":
        return cls(
            access_token=grant.access_token,
            user=grant.user,
            refresh_token=grant.refresh_token,
        )

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Run a request on behalf of this session.

        Raises:
            SessionExpiredError: if the session is (or becomes) invalidated
        """
        if not self._active:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SessionExpiredError("Session has ended")

        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and not self._active:
                raise SessionExpiredError("Session ended while a request was in flight") from None
            raise
        finally:
            self._pending.discard(task)

    def invalidate(self) -> int:
        """
        End the session and cancel every request still in flight.

        Returns the number of requests cancelled.
        """
        self._active = False
        cancelled = 0
        for task in list(self._pending):
            if not task.done():
                task.cancel()
                cancelled += 1
        if cancelled:
            logger.info("session_requests_cancelled", count=cancelled, user_id=self.user.id)
        return cancelled

    def __repr__(self) -> str:
        state = "active" if self._active else "invalidated"
        return f"<Session {self.user.email} {state}>"
