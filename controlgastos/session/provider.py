"""
Session Provider

Owns the current Session for one UI session and tells every bound view
controller when it changes.

FLOW:
1. sign_in   -> old session invalidated, new session published
2. sign_out  -> provider logout (best effort), session invalidated, None published
3. publish   -> each listener is awaited, so every bound controller issues
                exactly one fetch per change
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from controlgastos.session.session import Session
from controlgastos.audit import AuditLogger
from controlgastos.models.finance import AuthGrant
from controlgastos.services.auth.interface import AuthProviderInterface
from controlgastos.errors import ApiError


SessionListener = Callable[[Optional[Session]], Awaitable[object]]

logger = structlog.get_logger(__name__)


class SessionProvider:
    """
    Supplies the authentication token and identity to everything else.

    There is at most one active session at a time.
    """

    def __init__(
        self,
        auth: AuthProviderInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth
        self._audit_logger = audit_logger
        self._session: Optional[Session] = None
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def auth(self) -> AuthProviderInterface:
        return self._auth

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register interest in session changes.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _publish(self) -> None:
        session = self._session
        if self._listeners:
            await asyncio.gather(*(listener(session) for listener in list(self._listeners)))

    async def adopt(self, grant: AuthGrant) -> Session:
        """
        Install a session from an existing grant (e.g. restored at startup).

        Any previous session is invalidated first.
        """
        if self._session is not None:
            self._session.invalidate()
        self._session = Session.from_grant(grant)
        logger.info("session_established", user_id=grant.user.id)
        await self._publish()
        return self._session

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Authenticate and publish the new session.

        Raises:
            AuthError: If the credentials are rejected
            TransportError: If the provider cannot be reached
        """
        grant = await self._auth.sign_in(email, password)
        if self._audit_logger:
            await self._audit_logger.log_signed_in(user_id=grant.user.id, email=grant.user.email)
        return await self.adopt(grant)

    async def sign_out(self) -> None:
        """
        End the current session.

        Provider-side logout failures are logged, never raised: the local
        session is torn down regardless.
        """
        session = self._session
        if session is None:
            return

        try:
            await self._auth.sign_out(session.access_token)
        except ApiError as e:
            logger.warning("provider_sign_out_failed", error=str(e), user_id=session.user.id)

        session.invalidate()
        self._session = None

        if self._audit_logger:
            await self._audit_logger.log_signed_out(user_id=session.user.id)

        await self._publish()
