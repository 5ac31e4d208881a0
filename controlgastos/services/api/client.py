"""
Finance API Client

Thin async wrapper over the ControlGastos HTTP API.

This client handles:
1. Bearer authentication from the caller's Session
2. JSON encoding/decoding and response validation into our models
3. Mapping failures onto the client error taxonomy
4. Retrying reads (never writes) on transport failures

DESIGN DECISION: One httpx.AsyncClient per request. The Streamlit shell
runs each interaction on a fresh event loop, and pooled connections
cannot outlive their loop.

CRITICAL: Non-2xx responses carry {"error": "..."} and that message is
shown to the user verbatim. We never rewrite it.
"""

from typing import Any, Callable, Optional

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from controlgastos.config import ApiSettings, get_settings
from controlgastos.models.finance import (
    Category,
    CoupleLink,
    DashboardSummary,
    Transaction,
    TransactionCreate,
    TransactionScope,
)
from controlgastos.errors import (
    RemoteRejectedError,
    TransportError,
)
from controlgastos.session.session import Session


logger = structlog.get_logger(__name__)

_transactions_adapter = TypeAdapter(list[Transaction])
_categories_adapter = TypeAdapter(list[Category])
_couple_adapter = TypeAdapter(Optional[CoupleLink])


def extract_error_message(response: httpx.Response) -> str:
    """Pull the server's error message out of a non-2xx response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("error", "message", "msg", "error_description"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value

    return f"Request failed with status {response.status_code}"


read_retry = retry(
    retry=retry_if_exception_type(TransportError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    reraise=True,
)


class FinanceApiClient:
    """
    Client for the finance API endpoints.

    IMPORTANT BOUNDARIES:
    1. This client does not cache anything - every call hits the API
    2. It never computes balances or totals
    3. It does not know about views; controllers decide when to call it
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings().api
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        session: Session,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        """
        Issue one authenticated request and decode the JSON body.

        Returns:
            The decoded body, or None for empty responses

        Raises:
            RemoteRejectedError: non-2xx response
            TransportError: network failure or undecodable body
        """
        try:
            async with self._build_client() as client:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    json=json,
                    headers=session.auth_headers,
                )
        except httpx.HTTPError as e:
            logger.warning("api_transport_error", method=method, path=path, error=str(e))
            raise TransportError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            message = extract_error_message(response)
            logger.info(
                "api_request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise RemoteRejectedError(response.status_code, message, path=path)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned a non-JSON body") from e

    def _parse(self, path: str, parser: Callable[[Any], Any], body: Any) -> Any:
        try:
            return parser(body)
        except ValidationError as e:
            logger.warning("api_unexpected_shape", path=path, errors=e.error_count())
            raise TransportError(f"Unexpected response from {path}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @read_retry
    async def get_dashboard(self, session: Session) -> DashboardSummary:
        """GET /dashboard/individual"""
        path = "/dashboard/individual"
        body = await self._request("GET", path, session)
        return self._parse(path, DashboardSummary.model_validate, body)

    @read_retry
    async def list_transactions(
        self,
        session: Session,
        scope: Optional[TransactionScope] = None,
    ) -> list[Transaction]:
        """
        GET /transactions

        Args:
            scope: Only transactions with this scope; None for all
        """
        path = "/transactions"
        params = {"scope": scope.value} if scope else None
        body = await self._request("GET", path, session, params=params)
        return self._parse(path, _transactions_adapter.validate_python, body or [])

    @read_retry
    async def list_categories(self, session: Session) -> list[Category]:
        """GET /categories"""
        path = "/categories"
        body = await self._request("GET", path, session)
        return self._parse(path, _categories_adapter.validate_python, body or [])

    @read_retry
    async def get_couple(self, session: Session) -> Optional[CoupleLink]:
        """GET /couple - None means the user is not linked."""
        path = "/couple"
        body = await self._request("GET", path, session)
        return self._parse(path, _couple_adapter.validate_python, body)

    @read_retry
    async def list_couple_transactions(self, session: Session) -> list[Transaction]:
        """GET /couple/transactions"""
        path = "/couple/transactions"
        body = await self._request("GET", path, session)
        return self._parse(path, _transactions_adapter.validate_python, body or [])

    # ------------------------------------------------------------------
    # Writes (never retried - they are not idempotent)
    # ------------------------------------------------------------------

    async def create_transaction(self, session: Session, request: TransactionCreate) -> Any:
        """POST /transactions"""
        return await self._request(
            "POST", "/transactions", session, json=request.to_payload()
        )

    async def delete_transaction(self, session: Session, transaction_id: str) -> None:
        """DELETE /transactions/{id}"""
        await self._request("DELETE", f"/transactions/{transaction_id}", session)

    async def invite_partner(self, session: Session, payload: dict) -> Any:
        """POST /couple with {partner_email}"""
        return await self._request("POST", "/couple", session, json=payload)

    async def fund_couple_wallet(self, session: Session, payload: dict) -> Any:
        """POST /couple/wallet/fund with {amount}"""
        return await self._request("POST", "/couple/wallet/fund", session, json=payload)
