"""
Transaction Form

Loads what the form needs (categories and whether a couple link exists)
and submits new transactions.

CRITICAL: The couple scope is only offered when a CoupleLink exists, and
a couple-scoped submission without one never reaches the API.
"""

from typing import Awaitable, Callable, Optional
from uuid import UUID

from controlgastos.audit import AuditLogger
from controlgastos.controllers.base import ActionState, ViewController
from controlgastos.models.finance import (
    FormPrerequisites,
    TransactionCreate,
    TransactionScope,
)
from controlgastos.models.forms import TransactionDraft
from controlgastos.services.api import FinanceApiClient
from controlgastos.session import Session


class TransactionFormController(ViewController[FormPrerequisites]):
    """New-transaction form and its prerequisites."""

    view_name = "transaction_form"

    def __init__(
        self,
        api: FinanceApiClient,
        audit_logger: Optional[AuditLogger] = None,
        on_success: Optional[Callable[[], Awaitable[object]]] = None,
    ):
        self.draft = TransactionDraft()
        self.submit_action = ActionState()
        self._on_success = on_success
        super().__init__(api, audit_logger)

    def initial_snapshot(self) -> FormPrerequisites:
        return FormPrerequisites()

    async def fetch(self, session: Session) -> FormPrerequisites:
        categories = await self._api.list_categories(session)
        couple = await self._api.get_couple(session)
        return FormPrerequisites(
            categories=categories,
            couple_id=couple.id if couple else None,
        )

    def _on_reset(self) -> None:
        self.draft.reset()
        self.submit_action.clear()

    def _after_load(self) -> None:
        # The link may have gone away since the user picked "couple"
        if self.draft.scope not in self.scope_options:
            self.draft.scope = TransactionScope.INDIVIDUAL

    @property
    def scope_options(self) -> list[TransactionScope]:
        options = [TransactionScope.INDIVIDUAL]
        if self.snapshot.couple_id:
            options.append(TransactionScope.COUPLE)
        return options

    async def submit(self) -> bool:
        """
        Create a transaction from the draft.

        Returns:
            True if the server accepted it
        """
        return await self._mutate(
            self.submit_action,
            "create_transaction",
            prepare=lambda: self.draft.to_request(self.snapshot.couple_id),
            send=self._api.create_transaction,
            on_success=self._created,
            resync=self._on_success,
        )

    async def _created(self, request: TransactionCreate, correlation_id: UUID) -> None:
        self.draft.reset()
        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                view=self.view_name,
                amount=str(request.amount),
                transaction_type=request.type.value,
                scope=request.scope.value,
                correlation_id=correlation_id,
            )
