"""
Form Drafts

Each draft holds what the user has typed so far, exactly as typed.
Drafts validate only required fields, numeric parsing and email shape;
everything else is the API's job.

DESIGN DECISION: Drafts are mutable on purpose. A rejected submission
must leave the user's input in place, and a successful one resets the
draft through `reset()`.
"""

import math
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, Field

from controlgastos.models.finance import (
    TransactionCreate,
    TransactionScope,
    TransactionType,
)
from controlgastos.errors import FormValidationError


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_amount(raw: str, field: str = "amount") -> Decimal:
    """
    Parse a user-typed amount.

    Raises:
        FormValidationError: if empty, not a number, not positive, or
            too large to send as a JSON number
    """
    text = (raw or "").strip()
    if not text:
        raise FormValidationError(field, "Please enter an amount")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise FormValidationError(field, f"'{text}' is not a valid amount")
    if not amount.is_finite() or amount <= 0:
        raise FormValidationError(field, "Amount must be greater than zero")
    if not math.isfinite(float(amount)):
        raise FormValidationError(field, "Amount is too large")
    return amount


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match((value or "").strip()))


class TransactionDraft(BaseModel):
    """Local state of the new-transaction form."""

    amount: str = ""
    type: TransactionType = TransactionType.EXPENSE
    scope: TransactionScope = TransactionScope.INDIVIDUAL
    category_id: str = ""
    description: str = ""
    date: str = Field(default_factory=lambda: date.today().isoformat())

    def reset(self) -> None:
        fresh = TransactionDraft()
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))

    def to_request(self, couple_id: Optional[str]) -> TransactionCreate:
        """
        Build the POST body.

        Args:
            couple_id: The current couple link id, or None if unlinked

        Raises:
            FormValidationError: on missing/invalid fields, or couple scope
                without a couple link
        """
        amount = parse_amount(self.amount)

        if not self.category_id:
            raise FormValidationError("category_id", "Please choose a category")

        try:
            tx_date = date.fromisoformat((self.date or "").strip())
        except ValueError:
            raise FormValidationError("date", "Please enter a valid date")

        if self.scope == TransactionScope.COUPLE and not couple_id:
            raise FormValidationError(
                "scope", "Couple transactions need a linked partner"
            )

        return TransactionCreate(
            amount=amount,
            type=self.type,
            scope=self.scope,
            category_id=self.category_id,
            description=self.description.strip(),
            date=tx_date,
            couple_id=couple_id if self.scope == TransactionScope.COUPLE else None,
        )


class InvitationDraft(BaseModel):
    """Partner invitation form."""

    partner_email: str = ""

    @property
    def is_ready(self) -> bool:
        return is_valid_email(self.partner_email)

    def reset(self) -> None:
        self.partner_email = ""

    def to_payload(self) -> dict:
        if not self.is_ready:
            raise FormValidationError("partner_email", "Please enter a valid email")
        return {"partner_email": self.partner_email.strip()}


class FundingDraft(BaseModel):
    """Shared wallet top-up form."""

    amount: str = ""

    @property
    def is_ready(self) -> bool:
        try:
            parse_amount(self.amount)
        except FormValidationError:
            return False
        return True

    def reset(self) -> None:
        self.amount = ""

    def to_payload(self) -> dict:
        return {"amount": float(parse_amount(self.amount))}


class RegistrationDraft(BaseModel):
    """Sign-up form."""

    full_name: str = ""
    email: str = ""
    password: str = ""

    def validate_fields(self) -> None:
        if not self.full_name.strip():
            raise FormValidationError("full_name", "Please enter your full name")
        if not is_valid_email(self.email):
            raise FormValidationError("email", "Please enter a valid email")
        if not self.password:
            raise FormValidationError("password", "Please choose a password")

    def reset(self) -> None:
        self.full_name = ""
        self.email = ""
        self.password = ""
