"""
View Controller Base

Every view owns exactly one snapshot of one server resource and keeps it
in sync with two protocols:

FETCH/REFRESH
- `load()` reads the resource and replaces the snapshot wholesale
- no session -> no-op (not ready, not an error)
- failure -> keep the last good snapshot, flag it stale, tell the user
- every load takes a sequence number; only the newest result is applied

MUTATION-THEN-RESYNC
- validate locally -> mark the action in flight -> one write
- rejected -> show the server's message, change nothing else
- accepted -> clear the form, then re-read (never patch the snapshot)
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel

from controlgastos.audit import AuditLogger, create_correlation_id
from controlgastos.errors import (
    ApiError,
    FormValidationError,
    NotReadyError,
    RemoteRejectedError,
)
from controlgastos.services.api import FinanceApiClient
from controlgastos.session import Session, SessionProvider


T = TypeVar("T")
P = TypeVar("P")

logger = structlog.get_logger(__name__)


class ActionState(BaseModel):
    """Per-action UI state: disables the trigger and holds the last error."""

    in_flight: bool = False
    error: Optional[str] = None

    def clear(self) -> None:
        self.in_flight = False
        self.error = None


class ViewController(ABC, Generic[T]):
    """
    Base class for the fetch/refresh and mutation protocols.

    Subclasses provide `initial_snapshot()` and `fetch()`.
    """

    view_name = "view"

    def __init__(
        self,
        api: FinanceApiClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._api = api
        self._audit_logger = audit_logger
        self._session: Optional[Session] = None
        self._sequence = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

        self.snapshot: T = self.initial_snapshot()
        self.loading = False
        self.loaded = False
        self.stale = False
        self.load_error: Optional[str] = None

    @abstractmethod
    def initial_snapshot(self) -> T:
        """The empty value shown before the first successful load."""
        pass

    @abstractmethod
    async def fetch(self, session: Session) -> T:
        """Read the resource. Raises ApiError on failure."""
        pass

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_ready(self) -> bool:
        return self._session is not None and self._session.is_active

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    async def bind(self, provider: SessionProvider) -> None:
        """Follow the provider's session from now on."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = provider.subscribe(self.set_session)
        await self.set_session(provider.session)

    def unbind(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def set_session(self, session: Optional[Session]) -> bool:
        """
        Session dependency changed.

        A different session always starts from an empty view, so one
        user's data is never shown to the next.
        """
        if session is self._session:
            return False
        self._session = session
        self.reset()
        if session is None:
            return False
        return await self.load()

    def reset(self) -> None:
        """Back to the initial snapshot. Discards any load in flight."""
        self._sequence += 1
        self.snapshot = self.initial_snapshot()
        self.loading = False
        self.loaded = False
        self.stale = False
        self.load_error = None
        self._on_reset()

    def _on_reset(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Fetch/refresh
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """
        Refresh the snapshot from the API.

        Returns True if a new snapshot was applied.
        """
        session = self._session
        if session is None or not session.is_active:
            return False

        self._sequence += 1
        sequence = self._sequence
        self.loading = True

        try:
            snapshot = await session.run(self.fetch(session))
        except NotReadyError:
            return False
        except ApiError as e:
            if sequence != self._sequence:
                logger.debug("view_load_superseded", view=self.view_name, sequence=sequence)
                return False
            await self._load_failed(e)
            return False
        finally:
            if sequence == self._sequence:
                self.loading = False

        if sequence != self._sequence or not session.is_active:
            logger.debug("view_load_superseded", view=self.view_name, sequence=sequence)
            return False

        self.snapshot = snapshot
        self.loaded = True
        self.stale = False
        self.load_error = None
        self._after_load()
        return True

    def _after_load(self) -> None:
        pass

    async def _load_failed(self, error: ApiError) -> None:
        # Keep whatever we had; it is stale only if we ever had something
        self.stale = self.loaded
        self.load_error = error.user_message
        status_code = getattr(error, "status_code", None)

        logger.warning(
            "view_load_failed",
            view=self.view_name,
            error=str(error),
            status_code=status_code,
            kept_stale_snapshot=self.stale,
        )
        if self._audit_logger:
            await self._audit_logger.log_view_load_failed(
                view=self.view_name,
                error_message=str(error),
                kept_stale_snapshot=self.stale,
                status_code=status_code,
            )

    # ------------------------------------------------------------------
    # Mutation-then-resync
    # ------------------------------------------------------------------

    async def _mutate(
        self,
        action: ActionState,
        name: str,
        prepare: Callable[[], P],
        send: Callable[[Session, P], Awaitable[Any]],
        on_success: Optional[Callable[[P, UUID], Awaitable[None]]] = None,
        resync: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> bool:
        """
        Run one write and resynchronize.

        Args:
            action: State of the triggering control
            name: Action name for logs
            prepare: Builds the request; raises FormValidationError
            send: Issues the write
            on_success: Clears form fields / records the action
            resync: What to re-read afterwards (defaults to this view's load)

        Returns:
            True if the write was accepted
        """
        session = self._session
        if session is None or not session.is_active:
            return False

        if action.in_flight:
            logger.debug("mutation_already_in_flight", view=self.view_name, action=name)
            return False

        try:
            payload = prepare()
        except FormValidationError as e:
            action.error = e.message
            return False

        correlation_id = create_correlation_id()
        action.in_flight = True
        action.error = None

        try:
            await session.run(send(session, payload))
        except NotReadyError:
            return False
        except RemoteRejectedError as e:
            action.error = e.message
            if self._audit_logger:
                await self._audit_logger.log_mutation_rejected(
                    view=self.view_name,
                    action=name,
                    status_code=e.status_code,
                    error_message=e.message,
                    correlation_id=correlation_id,
                )
            return False
        except ApiError as e:
            action.error = e.user_message
            logger.error("mutation_failed", view=self.view_name, action=name, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_mutation_failed(
                    view=self.view_name,
                    action=name,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return False
        finally:
            action.in_flight = False

        if on_success is not None:
            await on_success(payload, correlation_id)

        await (resync or self.load)()
        return True
