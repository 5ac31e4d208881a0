"""Dashboard view: the server-computed individual summary."""

from typing import Optional

from controlgastos.audit import AuditLogger
from controlgastos.controllers.base import ViewController
from controlgastos.models.finance import DashboardSummary
from controlgastos.presentation.derived import (
    DEFAULT_PREVIEW_LIMIT,
    BreakdownRow,
    breakdown_preview,
    category_breakdown,
)
from controlgastos.services.api import FinanceApiClient
from controlgastos.session import Session


class DashboardController(ViewController[Optional[DashboardSummary]]):
    """Holds the last DashboardSummary. None until the first load succeeds."""

    view_name = "dashboard"

    def __init__(
        self,
        api: FinanceApiClient,
        audit_logger: Optional[AuditLogger] = None,
        preview_limit: int = DEFAULT_PREVIEW_LIMIT,
    ):
        self.preview_limit = preview_limit
        super().__init__(api, audit_logger)

    def initial_snapshot(self) -> Optional[DashboardSummary]:
        return None

    async def fetch(self, session: Session) -> DashboardSummary:
        return await self._api.get_dashboard(session)

    @property
    def breakdown(self) -> list[BreakdownRow]:
        return category_breakdown(self.snapshot)

    @property
    def preview(self) -> tuple[list[BreakdownRow], bool]:
        """Rows shown on the dashboard card and whether more exist."""
        return breakdown_preview(self.breakdown, self.preview_limit)
