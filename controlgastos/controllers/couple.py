"""
Couple View

Link state, shared wallet and the couple transaction history.

STATE MACHINE (two states, derived from GET /couple):
    unlinked --invite accepted + refetch returns a link--> linked

DESIGN DECISION: A sent invitation does not create a "pending" state.
After a successful invite the view refetches; it only becomes linked
when the server reports a CoupleLink.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from controlgastos.audit import AuditLogger
from controlgastos.controllers.base import ActionState, ViewController
from controlgastos.models.finance import CoupleSnapshot, LinkState
from controlgastos.models.forms import FundingDraft, InvitationDraft
from controlgastos.presentation.derived import counterparty_name
from controlgastos.services.api import FinanceApiClient
from controlgastos.session import Session


class CoupleController(ViewController[CoupleSnapshot]):
    """Couple link, wallet funding and partner invitation."""

    view_name = "couple"

    def __init__(
        self,
        api: FinanceApiClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.invite_draft = InvitationDraft()
        self.fund_draft = FundingDraft()
        self.invite_action = ActionState()
        self.fund_action = ActionState()
        super().__init__(api, audit_logger)

    def initial_snapshot(self) -> CoupleSnapshot:
        return CoupleSnapshot()

    async def fetch(self, session: Session) -> CoupleSnapshot:
        couple = await self._api.get_couple(session)
        if couple is None:
            return CoupleSnapshot()
        transactions = await self._api.list_couple_transactions(session)
        return CoupleSnapshot(couple=couple, transactions=transactions)

    def _on_reset(self) -> None:
        self.invite_draft.reset()
        self.fund_draft.reset()
        self.invite_action.clear()
        self.fund_action.clear()

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    @property
    def link_state(self) -> LinkState:
        return self.snapshot.link_state

    @property
    def partner_name(self) -> str:
        email = self._session.user.email if self._session else None
        return counterparty_name(self.snapshot.couple, email)

    @property
    def balance(self) -> Decimal:
        if self.snapshot.couple is None:
            return Decimal("0")
        return self.snapshot.couple.balance

    @property
    def can_invite(self) -> bool:
        return (
            self.link_state == LinkState.UNLINKED
            and self.invite_draft.is_ready
            and not self.invite_action.in_flight
        )

    @property
    def can_fund(self) -> bool:
        return (
            self.link_state == LinkState.LINKED
            and self.fund_draft.is_ready
            and not self.fund_action.in_flight
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def invite(self) -> bool:
        """Send a partner invitation, then refetch the link."""
        return await self._mutate(
            self.invite_action,
            "invite_partner",
            prepare=self.invite_draft.to_payload,
            send=self._api.invite_partner,
            on_success=self._invited,
        )

    async def fund(self) -> bool:
        """Add money to the shared wallet, then refetch."""
        return await self._mutate(
            self.fund_action,
            "fund_wallet",
            prepare=self.fund_draft.to_payload,
            send=self._api.fund_couple_wallet,
            on_success=self._funded,
        )

    async def _invited(self, payload: dict, correlation_id: UUID) -> None:
        self.invite_draft.reset()
        if self._audit_logger:
            await self._audit_logger.log_partner_invited(
                view=self.view_name,
                partner_email=payload["partner_email"],
                correlation_id=correlation_id,
            )

    async def _funded(self, payload: dict, correlation_id: UUID) -> None:
        self.fund_draft.reset()
        if self._audit_logger:
            await self._audit_logger.log_wallet_funded(
                view=self.view_name,
                amount=str(payload["amount"]),
                correlation_id=correlation_id,
            )
