"""
Data Models Package

Pydantic models for everything the client reads from the API,
plus the local form drafts that produce write requests.
"""

from controlgastos.models.finance import (
    AuthGrant,
    Category,
    CategoryRef,
    CategoryTotal,
    CoupleLink,
    CoupleMember,
    CoupleSnapshot,
    CoupleWallet,
    DashboardSummary,
    FormPrerequisites,
    LinkState,
    OwnerProfile,
    Transaction,
    TransactionCreate,
    TransactionScope,
    TransactionType,
    UserIdentity,
)
from controlgastos.models.forms import (
    FundingDraft,
    InvitationDraft,
    RegistrationDraft,
    TransactionDraft,
)
from controlgastos.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "AuthGrant",
    "Category",
    "CategoryRef",
    "CategoryTotal",
    "CoupleLink",
    "CoupleMember",
    "CoupleSnapshot",
    "CoupleWallet",
    "DashboardSummary",
    "FormPrerequisites",
    "LinkState",
    "OwnerProfile",
    "Transaction",
    "TransactionCreate",
    "TransactionScope",
    "TransactionType",
    "UserIdentity",
    # Form drafts
    "FundingDraft",
    "InvitationDraft",
    "RegistrationDraft",
    "TransactionDraft",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
