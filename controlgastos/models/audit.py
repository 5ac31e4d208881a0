"""
Audit Models for ControlGastos

Every user-initiated action and every failed read is recorded as an
AuditEvent. This gives:
1. A trace of what the user did and what the server said back
2. Debugging information when a view shows stale data
3. Correlation of a write with the re-read that follows it

DESIGN DECISION: Audit events are append-only and local. The server
keeps the real history; this trail is for diagnosing the client.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session lifecycle
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    SIGN_UP_COMPLETED = "sign_up_completed"

    # Reads
    VIEW_LOAD_FAILED = "view_load_failed"

    # Writes
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_DELETE_CANCELLED = "transaction_delete_cancelled"
    PARTNER_INVITED = "partner_invited"
    WALLET_FUNDED = "wallet_funded"
    MUTATION_REJECTED = "mutation_rejected"
    MUTATION_FAILED = "mutation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    view: Optional[str] = Field(
        default=None,
        description="View that triggered the event (e.g. 'transactions')"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g. 'transaction', 'couple')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Server id of the entity this event relates to"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties a write to the re-read that follows it"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "view": self.view,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "status_code": self.status_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(view, amount, correlation_id)
        event = AuditEventBuilder.mutation_rejected(view, action, 400, "already linked")
    """

    @staticmethod
    def signed_in(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            entity_type="user",
            entity_id=user_id,
            description=f"Signed in as {email}",
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            entity_type="user",
            entity_id=user_id,
            description="Signed out",
            is_user_action=True,
        )

    @staticmethod
    def sign_up_completed(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_UP_COMPLETED,
            entity_type="user",
            description=f"Account registered for {email}",
            is_user_action=True,
        )

    @staticmethod
    def view_load_failed(
        view: str,
        error_message: str,
        kept_stale_snapshot: bool,
        status_code: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VIEW_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            view=view,
            description=f"Could not refresh {view}",
            details={"kept_stale_snapshot": kept_stale_snapshot},
            status_code=status_code,
            error_message=error_message,
        )

    @staticmethod
    def transaction_created(
        view: str,
        amount: str,
        transaction_type: str,
        scope: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            view=view,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Recorded {transaction_type} of {amount} ({scope})",
            details={
                "amount": amount,
                "type": transaction_type,
                "scope": scope,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        view: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            view=view,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def transaction_delete_cancelled(view: str, transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETE_CANCELLED,
            severity=AuditSeverity.DEBUG,
            view=view,
            entity_type="transaction",
            entity_id=transaction_id,
            description="User cancelled transaction deletion",
            is_user_action=True,
        )

    @staticmethod
    def partner_invited(view: str, partner_email: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTNER_INVITED,
            view=view,
            entity_type="couple",
            correlation_id=correlation_id,
            description=f"Invitation sent to {partner_email}",
            details={"partner_email": partner_email},
            is_user_action=True,
        )

    @staticmethod
    def wallet_funded(view: str, amount: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_FUNDED,
            view=view,
            entity_type="couple_wallet",
            correlation_id=correlation_id,
            description=f"Shared wallet funded with {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def mutation_rejected(
        view: str,
        action: str,
        status_code: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_REJECTED,
            severity=AuditSeverity.WARNING,
            view=view,
            correlation_id=correlation_id,
            description=f"Server rejected {action}",
            details={"action": action},
            status_code=status_code,
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        view: str,
        action: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            view=view,
            correlation_id=correlation_id,
            description=f"Could not complete {action}",
            details={"action": action},
            error_message=error_message,
            is_user_action=True,
        )
