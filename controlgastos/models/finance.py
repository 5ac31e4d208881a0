"""
Core Data Models for ControlGastos

These models describe the payloads exchanged with the finance API.
The client does not own any of this data:
1. Everything here is read from the API and replaced wholesale on refetch
2. Field names follow the wire format, with aliases for the embedded joins
3. Unknown fields are ignored so backend additions never break the client

DESIGN DECISION: Monetary values are kept as Decimal and are only ever
formatted for display. Balances and totals are computed server-side.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionScope(str, Enum):
    """
    Who a transaction is attributed to.

    COUPLE is only valid while a CoupleLink exists.
    """
    INDIVIDUAL = "individual"
    COUPLE = "couple"


class LinkState(str, Enum):
    """
    Couple link state as seen by the client.

    The API only exposes linked/unlinked; an invitation that has been
    sent but not accepted is indistinguishable from UNLINKED.
    """
    UNLINKED = "unlinked"
    LINKED = "linked"


def _coerce_date(value: Any) -> Any:
    """Accept both 'YYYY-MM-DD' and full ISO timestamps."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


# =============================================================================
# IDENTITY
# =============================================================================

class UserIdentity(BaseModel):
    """The signed-in user as reported by the auth provider."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str
    email: str
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class AuthGrant(BaseModel):
    """What a successful sign-in hands back: a bearer token and who it is for."""

    access_token: str = Field(..., min_length=1)
    user: UserIdentity
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


# =============================================================================
# REFERENCE DATA
# =============================================================================

class Category(BaseModel):
    """A transaction category (read-only reference data)."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str
    icon: str = ""
    color: str = "#cbd5e1"


class CategoryRef(BaseModel):
    """Category fields embedded in a transaction row."""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    icon: Optional[str] = None
    color: Optional[str] = None


class OwnerProfile(BaseModel):
    """Profile of the user who recorded a transaction."""
    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A transaction as returned by the API.

    `id` is the identity key for rendering and deletion.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    amount: Decimal = Field(..., ge=0)
    type: TransactionType
    scope: TransactionScope = TransactionScope.INDIVIDUAL
    description: Optional[str] = None
    date: date
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = Field(default=None, alias="categories")
    user_id: Optional[str] = None
    couple_id: Optional[str] = None
    owner: Optional[OwnerProfile] = Field(default=None, alias="profiles")

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _coerce_date(v)


class TransactionCreate(BaseModel):
    """
    Body of POST /transactions.

    Amounts go over the wire as JSON numbers, not strings.
    """

    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    scope: TransactionScope
    category_id: str = Field(..., min_length=1)
    description: str = ""
    date: date
    couple_id: Optional[str] = None

    @field_serializer('amount')
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


# =============================================================================
# COUPLE
# =============================================================================

class CoupleMember(BaseModel):
    """One of the two linked users."""
    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None
    email: str

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class CoupleWallet(BaseModel):
    """Shared wallet attached to a couple link."""
    model_config = ConfigDict(extra="ignore")

    balance: Decimal = Decimal("0")


class CoupleLink(BaseModel):
    """
    The record joining two users plus their shared wallet.

    At most one per user. Its presence gates the couple scope.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    user1: CoupleMember
    user2: CoupleMember
    wallet: Optional[CoupleWallet] = Field(default=None, alias="couple_wallets")

    @field_validator('wallet', mode='before')
    @classmethod
    def unwrap_wallet(cls, v: Any) -> Any:
        # One-to-one joins can come back as a single-element list
        if isinstance(v, list):
            return v[0] if v else None
        return v

    @property
    def members(self) -> tuple[CoupleMember, CoupleMember]:
        return self.user1, self.user2

    @property
    def balance(self) -> Decimal:
        return self.wallet.balance if self.wallet else Decimal("0")


# =============================================================================
# DASHBOARD
# =============================================================================

class CategoryTotal(BaseModel):
    """Per-category expense total for the current period."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str
    total: Decimal = Decimal("0")
    color: str = "#6366f1"
    icon: str = ""


class DashboardSummary(BaseModel):
    """
    Server-computed aggregate for the current period.

    This layer only renders it.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    categories: list[CategoryTotal] = Field(default_factory=list)
    total_expenses: Decimal = Field(default=Decimal("0"), alias="totalExpenses")
    total_income: Decimal = Field(default=Decimal("0"), alias="totalIncome")
    balance: Decimal = Decimal("0")


# =============================================================================
# VIEW SNAPSHOTS
# =============================================================================

class FormPrerequisites(BaseModel):
    """Lookups the transaction form needs before it can be shown."""

    categories: list[Category] = Field(default_factory=list)
    couple_id: Optional[str] = None


class CoupleSnapshot(BaseModel):
    """What the couple view loads in one fetch."""

    couple: Optional[CoupleLink] = None
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def link_state(self) -> LinkState:
        return LinkState.LINKED if self.couple is not None else LinkState.UNLINKED
