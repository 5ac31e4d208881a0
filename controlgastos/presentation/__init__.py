"""Presentation helpers: pure functions from snapshots to display values."""

from controlgastos.presentation.derived import (
    DEFAULT_ICON,
    DEFAULT_PREVIEW_LIMIT,
    Badge,
    BreakdownRow,
    NavItem,
    balance_style,
    breakdown_percent,
    breakdown_preview,
    category_breakdown,
    counterparty,
    counterparty_name,
    format_money,
    format_transaction_date,
    navigation_items,
    scope_badge,
    signed_amount,
    transaction_icon,
    transaction_title,
    type_badge,
    user_label,
)

__all__ = [
    # Dashboard
    "BreakdownRow",
    "DEFAULT_PREVIEW_LIMIT",
    "balance_style",
    "breakdown_percent",
    "breakdown_preview",
    "category_breakdown",
    # Couple
    "counterparty",
    "counterparty_name",
    # Transactions
    "Badge",
    "DEFAULT_ICON",
    "format_money",
    "format_transaction_date",
    "scope_badge",
    "signed_amount",
    "transaction_icon",
    "transaction_title",
    "type_badge",
    # Navigation
    "NavItem",
    "navigation_items",
    "user_label",
]
