"""
Derived State

Pure functions from snapshots to what the screens show. Nothing here
talks to the API or mutates a snapshot.

DESIGN DECISION: Balances, totals and per-category sums come from the
server. The only arithmetic done client-side is the percentage of a
category within total expenses, and formatting.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from controlgastos.models.finance import (
    CoupleLink,
    CoupleMember,
    DashboardSummary,
    Transaction,
    TransactionScope,
    TransactionType,
)
from controlgastos.session.session import Session


DEFAULT_ICON = "💰"
DEFAULT_PREVIEW_LIMIT = 5

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


# =============================================================================
# Dashboard
# =============================================================================

class BreakdownRow(BaseModel):
    """One category line of the expense breakdown."""

    id: str
    name: str
    icon: str = ""
    color: str = "#6366f1"
    total: Decimal = Decimal("0")
    percent: float = 0.0

    @property
    def bar_width(self) -> float:
        """Width of the progress bar, clamped to 0-100."""
        return max(0.0, min(100.0, self.percent))

    @property
    def percent_label(self) -> str:
        return f"{self.percent:.1f}%"


def breakdown_percent(total: Decimal, total_expenses: Decimal) -> float:
    """Share of one category in total expenses. 0 when there are no expenses."""
    if not total_expenses:
        return 0.0
    return float(Decimal(total) / Decimal(total_expenses) * 100)


def category_breakdown(summary: Optional[DashboardSummary]) -> list[BreakdownRow]:
    """Rows for the breakdown, in the order the server sent them."""
    if summary is None:
        return []
    return [
        BreakdownRow(
            id=category.id,
            name=category.name,
            icon=category.icon,
            color=category.color,
            total=category.total,
            percent=breakdown_percent(category.total, summary.total_expenses),
        )
        for category in summary.categories
    ]


def breakdown_preview(
    rows: list[BreakdownRow],
    limit: int = DEFAULT_PREVIEW_LIMIT,
) -> tuple[list[BreakdownRow], bool]:
    """First `limit` rows, and whether a "view all" link is needed."""
    return rows[:limit], len(rows) > limit


def balance_style(balance: Decimal) -> str:
    return "negative" if balance < 0 else "default"


# =============================================================================
# Couple
# =============================================================================

def counterparty(couple: Optional[CoupleLink], current_email: Optional[str]) -> Optional[CoupleMember]:
    """
    The member of the link who is not the current user.

    None if the current user is not one of the two members.
    """
    if couple is None:
        return None
    me = (current_email or "").strip().lower()
    if couple.user1.email.strip().lower() == me:
        return couple.user2
    if couple.user2.email.strip().lower() == me:
        return couple.user1
    return None


def counterparty_name(couple: Optional[CoupleLink], current_email: Optional[str]) -> str:
    member = counterparty(couple, current_email)
    return member.display_name if member else ""


# =============================================================================
# Transactions
# =============================================================================

class Badge(BaseModel):
    label: str
    style: str


SCOPE_BADGES = {
    TransactionScope.COUPLE: Badge(label="Couple", style="couple"),
    TransactionScope.INDIVIDUAL: Badge(label="Just me", style="neutral"),
}

TYPE_BADGES = {
    TransactionType.INCOME: Badge(label="+", style="positive"),
    TransactionType.EXPENSE: Badge(label="-", style="default"),
}


def scope_badge(scope: TransactionScope) -> Badge:
    return SCOPE_BADGES[scope]


def type_badge(transaction_type: TransactionType) -> Badge:
    return TYPE_BADGES[transaction_type]


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """1234.5 -> "$1,234.50"; negatives keep the sign in front."""
    value = Decimal(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def signed_amount(transaction: Transaction, symbol: str = "$") -> str:
    prefix = "+" if transaction.type == TransactionType.INCOME else "-"
    return f"{prefix}{format_money(transaction.amount, symbol)}"


def transaction_title(transaction: Transaction) -> str:
    if transaction.description:
        return transaction.description
    if transaction.category and transaction.category.name:
        return transaction.category.name
    return "Transaction"


def transaction_icon(transaction: Transaction) -> str:
    if transaction.category and transaction.category.icon:
        return transaction.category.icon
    return DEFAULT_ICON


def format_transaction_date(value: date, short: bool = False) -> str:
    """date(2024, 1, 5) -> "5 January" ("5 Jan" when short)."""
    month = MONTH_NAMES[value.month - 1]
    return f"{value.day} {month[:3] if short else month}"


# =============================================================================
# Navigation
# =============================================================================

class NavItem(BaseModel):
    label: str
    page: str
    icon: str


NAV_ITEMS = (
    NavItem(label="Dashboard", page="dashboard", icon="📊"),
    NavItem(label="Transactions", page="transactions", icon="💸"),
    NavItem(label="Couple", page="couple", icon="💑"),
)


def navigation_items(session: Optional[Session]) -> list[NavItem]:
    """Navigation is only offered to signed-in users."""
    if session is None or not session.is_active:
        return []
    return list(NAV_ITEMS)


def user_label(session: Optional[Session]) -> str:
    if session is None:
        return ""
    return session.user.display_name
