"""
Main Orchestrator for ControlGastos

This module ties together all the components for one UI session:
1. SessionProvider (who is signed in)
2. FinanceApiClient (the only way data comes in or goes out)
3. One controller per screen, bound to the provider

DESIGN DECISION: The orchestrator enforces the boundaries:
- Views never talk to each other; they only follow the session
- No view shows data that did not come from its own last fetch
- Every user action is audited

Nothing here holds global state. The Streamlit shell keeps one FinanceApp
per browser session.
"""

from typing import Optional

import httpx
import structlog

from controlgastos.audit import AuditLogger
from controlgastos.config import Settings, get_settings
from controlgastos.controllers import (
    CoupleController,
    DashboardController,
    RegistrationController,
    SignInController,
    TransactionsController,
    ViewController,
)
from controlgastos.services.api import FinanceApiClient
from controlgastos.services.auth import AuthProviderInterface, SupabaseAuthProvider
from controlgastos.session import Session, SessionProvider


logger = structlog.get_logger(__name__)


class FinanceApp:
    """
    All the components of one UI session.

    Call `start()` once before use so the views follow the session.
    """

    def __init__(
        self,
        provider: SessionProvider,
        api: FinanceApiClient,
        audit_logger: AuditLogger,
        preview_limit: int = 5,
        currency_symbol: str = "$",
    ):
        self.provider = provider
        self.api = api
        self.audit_logger = audit_logger
        self.currency_symbol = currency_symbol

        self.dashboard = DashboardController(api, audit_logger, preview_limit=preview_limit)
        self.transactions = TransactionsController(api, audit_logger)
        self.couple = CoupleController(api, audit_logger)
        self.registration = RegistrationController(provider, audit_logger)
        self.sign_in_form = SignInController(provider)

        self._started = False

    @property
    def session(self) -> Optional[Session]:
        return self.provider.session

    @property
    def views(self) -> tuple[ViewController, ...]:
        return (self.dashboard, self.transactions, self.couple)

    async def start(self) -> None:
        """Bind every view to the session provider."""
        if self._started:
            return
        for view in self.views:
            await view.bind(self.provider)
        self._started = True
        logger.info("app_started", views=[view.view_name for view in self.views])

    async def sign_out(self) -> None:
        await self.sign_in_form.sign_out()
        self.registration.completed = False
        self.registration.message = None


def create_app_components(
    settings: Optional[Settings] = None,
    auth: Optional[AuthProviderInterface] = None,
    api_transport: Optional[httpx.AsyncBaseTransport] = None,
    auth_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FinanceApp:
    """
    Factory function to create all application components.

    Args:
        settings: Configuration; loaded from the environment if omitted
        auth: Auth provider; Supabase if omitted
        api_transport: httpx transport for the finance API (tests)
        auth_transport: httpx transport for the auth provider (tests)

    Returns:
        A FinanceApp, not yet started
    """
    settings = settings or get_settings()

    if auth is None:
        auth = SupabaseAuthProvider(
            settings.auth,
            transport=auth_transport,
            timeout_seconds=settings.api.timeout_seconds,
        )

    audit_logger = AuditLogger()
    provider = SessionProvider(auth, audit_logger)
    api = FinanceApiClient(settings.api, transport=api_transport)

    return FinanceApp(
        provider=provider,
        api=api,
        audit_logger=audit_logger,
        preview_limit=settings.app.dashboard_preview_limit,
        currency_symbol=settings.app.currency_symbol,
    )
