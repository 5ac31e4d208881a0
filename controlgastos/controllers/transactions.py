"""
Transactions View

The user's transaction list, an optional scope filter, two-step delete,
and the embedded new-transaction form.
"""

from typing import Optional
from uuid import UUID

import structlog

from controlgastos.audit import AuditLogger
from controlgastos.controllers.base import ActionState, ViewController
from controlgastos.controllers.transaction_form import TransactionFormController
from controlgastos.errors import FormValidationError
from controlgastos.models.finance import Transaction, TransactionScope
from controlgastos.services.api import FinanceApiClient
from controlgastos.session import Session, SessionProvider


logger = structlog.get_logger(__name__)


class TransactionsController(ViewController[list[Transaction]]):
    """
    Transaction list.

    `scope_filter` of None means "all". Changing it triggers one fetch.
    """

    view_name = "transactions"

    def __init__(
        self,
        api: FinanceApiClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.scope_filter: Optional[TransactionScope] = None
        self.pending_delete: Optional[str] = None
        self.delete_action = ActionState()
        self.show_form = False
        self.form = TransactionFormController(api, audit_logger, on_success=self._form_submitted)
        super().__init__(api, audit_logger)

    def initial_snapshot(self) -> list[Transaction]:
        return []

    async def fetch(self, session: Session) -> list[Transaction]:
        return await self._api.list_transactions(session, self.scope_filter)

    async def bind(self, provider: SessionProvider) -> None:
        await super().bind(provider)
        await self.form.bind(provider)

    def unbind(self) -> None:
        super().unbind()
        self.form.unbind()

    def _on_reset(self) -> None:
        self.pending_delete = None
        self.delete_action.clear()
        self.show_form = False

    @property
    def is_empty(self) -> bool:
        """Loaded successfully and there is nothing to show."""
        return self.loaded and not self.snapshot

    async def set_filter(self, scope: Optional[TransactionScope]) -> bool:
        if scope == self.scope_filter:
            return False
        self.scope_filter = scope
        return await self.load()

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------

    async def toggle_form(self) -> bool:
        """Open or close the form. Opening re-reads categories and the couple link."""
        self.show_form = not self.show_form
        if self.show_form:
            await self.form.load()
        return self.show_form

    async def _form_submitted(self) -> None:
        self.show_form = False
        await self.load()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def request_delete(self, transaction_id: str) -> None:
        """First step: ask for confirmation."""
        self.pending_delete = transaction_id
        self.delete_action.error = None

    async def cancel_delete(self) -> None:
        transaction_id = self.pending_delete
        self.pending_delete = None
        if transaction_id and self._audit_logger:
            await self._audit_logger.log_transaction_delete_cancelled(
                view=self.view_name,
                transaction_id=transaction_id,
            )

    async def confirm_delete(self) -> bool:
        """Second step: send the delete and refetch the list."""
        return await self._mutate(
            self.delete_action,
            "delete_transaction",
            prepare=self._pending_delete_id,
            send=self._api.delete_transaction,
            on_success=self._deleted,
        )

    def _pending_delete_id(self) -> str:
        if not self.pending_delete:
            raise FormValidationError("transaction_id", "No transaction selected")
        return self.pending_delete

    async def _deleted(self, transaction_id: str, correlation_id: UUID) -> None:
        self.pending_delete = None
        logger.info("transaction_deleted", transaction_id=transaction_id)
        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                view=self.view_name,
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )
