"""
Audit Logger

DESIGN DECISION: Every user action and every failed refresh is logged.
This provides:
1. Traceability from a click to the request and the re-read after it
2. A record of server rejections shown to the user
3. Evidence when a view is showing stale data

The audit logger:
- Is async so it can sit inside the same coroutines as the requests
- Never raises into the caller
- Supports correlation IDs to tie a write to its resync
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from controlgastos.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log. `history` keeps the events
    of this UI session so the shell can show recent activity.
    """

    def __init__(self, max_history: int = 200):
        self._logger = structlog.get_logger(__name__)
        self._max_history = max_history
        self.history: list[AuditEvent] = []

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be recorded.
        """
        try:
            log_dict = event.to_log_dict()

            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)

            self.history.append(event)
            if len(self.history) > self._max_history:
                del self.history[: len(self.history) - self._max_history]
            return True
        except Exception as e:
            # Don't raise - auditing must not break the main flow
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def log_signed_in(self, user_id: str, email: str) -> None:
        await self.log(AuditEventBuilder.signed_in(user_id=user_id, email=email))

    async def log_signed_out(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_out(user_id=user_id))

    async def log_sign_up_completed(self, email: str) -> None:
        await self.log(AuditEventBuilder.sign_up_completed(email=email))

    async def log_view_load_failed(
        self,
        view: str,
        error_message: str,
        kept_stale_snapshot: bool,
        status_code: Optional[int] = None,
    ) -> None:
        """Log a read that left the view on its previous snapshot."""
        event = AuditEventBuilder.view_load_failed(
            view=view,
            error_message=error_message,
            kept_stale_snapshot=kept_stale_snapshot,
            status_code=status_code,
        )
        await self.log(event)

    async def log_transaction_created(
        self,
        view: str,
        amount: str,
        transaction_type: str,
        scope: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_created(
            view=view,
            amount=amount,
            transaction_type=transaction_type,
            scope=scope,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        view: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_deleted(
            view=view,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_delete_cancelled(self, view: str, transaction_id: str) -> None:
        event = AuditEventBuilder.transaction_delete_cancelled(
            view=view,
            transaction_id=transaction_id,
        )
        await self.log(event)

    async def log_partner_invited(
        self,
        view: str,
        partner_email: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.partner_invited(
            view=view,
            partner_email=partner_email,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_wallet_funded(self, view: str, amount: str, correlation_id: UUID) -> None:
        event = AuditEventBuilder.wallet_funded(
            view=view,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_mutation_rejected(
        self,
        view: str,
        action: str,
        status_code: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a write the server refused."""
        event = AuditEventBuilder.mutation_rejected(
            view=view,
            action=action,
            status_code=status_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_mutation_failed(
        self,
        view: str,
        action: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a write that never got an answer."""
        event = AuditEventBuilder.mutation_failed(
            view=view,
            action=action,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per user action and pass it through the write and the
    re-read that follows.
    """
    return uuid4()
