"""
Shared fixtures.

The finance API is an in-memory fake served through httpx.MockTransport,
so the real client code (headers, JSON, error mapping) runs in every test
without touching the network.
"""

import asyncio
import json
from collections import defaultdict, deque
from typing import Optional

import httpx
import pytest

from controlgastos.audit import AuditLogger
from controlgastos.config import ApiSettings, AuthSettings
from controlgastos.errors import AuthError
from controlgastos.models.finance import AuthGrant, UserIdentity
from controlgastos.services.api import FinanceApiClient
from controlgastos.services.auth import AuthProviderInterface
from controlgastos.session import Session, SessionProvider


ANA = UserIdentity(id="user-ana", email="ana@example.com", full_name="Ana")
LUIS = UserIdentity(id="user-luis", email="luis@example.com", full_name="Luis")


class FakeFinanceApi:
    """In-memory stand-in for the ControlGastos backend."""

    def __init__(self):
        self.categories = [
            {"id": "cat-food", "name": "Food", "icon": "🍔", "color": "#f97316"},
            {"id": "cat-rent", "name": "Rent", "icon": "🏠", "color": "#0ea5e9"},
        ]
        self.transactions: list[dict] = []
        self.couple: Optional[dict] = None
        self.couple_transactions: list[dict] = []
        self.dashboard = {
            "categories": [],
            "totalExpenses": 0,
            "totalIncome": 0,
            "balance": 0,
        }
        self.invites: list[str] = []
        self.link_on_invite = False

        self.requests: list[httpx.Request] = []
        self._rejections: dict[tuple[str, str], tuple[int, object]] = {}
        self._offline: set[tuple[str, str]] = set()
        self._holds: dict[tuple[str, str], deque] = defaultdict(deque)
        self._next_id = 1

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------

    def reject(self, method: str, path: str, status_code: int, body: object) -> None:
        """Answer every `method path` with this status and JSON body."""
        self._rejections[(method, path)] = (status_code, body)

    def go_offline(self, method: str, path: str) -> None:
        self._offline.add((method, path))

    def restore(self) -> None:
        self._rejections.clear()
        self._offline.clear()

    def hold(self, method: str, path: str) -> asyncio.Event:
        """Park the next matching request until the returned event is set."""
        gate = asyncio.Event()
        self._holds[(method, path)].append(gate)
        return gate

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def last_json(self, method: str, path: str) -> dict:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return json.loads(request.content)
        raise AssertionError(f"no {method} {path} request recorded")

    def link(self, me: UserIdentity = ANA, partner: UserIdentity = LUIS, balance: float = 0) -> None:
        self.couple = {
            "id": "couple-1",
            "user1": {"full_name": me.full_name, "email": me.email},
            "user2": {"full_name": partner.full_name, "email": partner.email},
            "couple_wallets": [{"balance": balance}],
        }

    def add_transaction(self, **fields) -> dict:
        tx = {
            "id": f"tx-{self._next_id}",
            "amount": 10,
            "type": "expense",
            "scope": "individual",
            "description": "",
            "date": "2024-01-05",
            "category_id": "cat-food",
            "categories": {"name": "Food", "icon": "🍔", "color": "#f97316"},
        }
        tx.update(fields)
        self._next_id += 1
        self.transactions.append(tx)
        return tx

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)

        holds = self._holds.get(key)
        if holds:
            await holds.popleft().wait()

        if key in self._offline:
            raise httpx.ConnectError("connection refused", request=request)
        if key in self._rejections:
            status_code, body = self._rejections[key]
            return httpx.Response(status_code, json=body)

        return self._route(request)

    def _route(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path

        if method == "GET" and path == "/dashboard/individual":
            return httpx.Response(200, json=self.dashboard)

        if method == "GET" and path == "/transactions":
            scope = request.url.params.get("scope")
            rows = [t for t in self.transactions if scope is None or t["scope"] == scope]
            return httpx.Response(200, json=rows)

        if method == "POST" and path == "/transactions":
            body = json.loads(request.content)
            tx = self.add_transaction(**body)
            return httpx.Response(201, json=tx)

        if method == "DELETE" and path.startswith("/transactions/"):
            tx_id = path.rsplit("/", 1)[1]
            before = len(self.transactions)
            self.transactions = [t for t in self.transactions if t["id"] != tx_id]
            if len(self.transactions) == before:
                return httpx.Response(404, json={"error": "Transaction not found"})
            return httpx.Response(200, json={"message": "Transaction deleted"})

        if method == "GET" and path == "/categories":
            return httpx.Response(200, json=self.categories)

        if method == "GET" and path == "/couple":
            return httpx.Response(200, content=json.dumps(self.couple).encode(),
                                  headers={"Content-Type": "application/json"})

        if method == "GET" and path == "/couple/transactions":
            return httpx.Response(200, json=self.couple_transactions)

        if method == "POST" and path == "/couple":
            body = json.loads(request.content)
            self.invites.append(body["partner_email"])
            if self.link_on_invite:
                self.link(partner=UserIdentity(id="user-partner", email=body["partner_email"]))
            return httpx.Response(201, json={"message": "Invitation sent"})

        if method == "POST" and path == "/couple/wallet/fund":
            body = json.loads(request.content)
            if self.couple is None:
                return httpx.Response(400, json={"error": "Not linked"})
            wallet = self.couple["couple_wallets"][0]
            wallet["balance"] = wallet["balance"] + body["amount"]
            return httpx.Response(200, json=wallet)

        return httpx.Response(404, json={"error": f"No route for {method} {path}"})


class FakeAuthProvider(AuthProviderInterface):
    """Accepts one password per known user."""

    def __init__(self):
        self.users = {ANA.email: ("secret", ANA), LUIS.email: ("secret", LUIS)}
        self.signed_up: list[tuple[str, str]] = []
        self.signed_out: list[str] = []
        self.fail_sign_out = False
        self._tokens = 0

    async def sign_up(self, email: str, password: str, full_name: str) -> None:
        if email in self.users:
            raise AuthError(422, "User already registered")
        self.signed_up.append((email, full_name))

    async def sign_in(self, email: str, password: str) -> AuthGrant:
        entry = self.users.get(email)
        if entry is None or entry[0] != password:
            raise AuthError(400, "Invalid login credentials")
        self._tokens += 1
        return AuthGrant(access_token=f"token-{self._tokens}", user=entry[1])

    async def sign_out(self, access_token: str) -> None:
        if self.fail_sign_out:
            raise AuthError(500, "logout failed")
        self.signed_out.append(access_token)


@pytest.fixture
def api_settings():
    return ApiSettings(base_url="http://api.test/")


@pytest.fixture
def auth_settings():
    return AuthSettings(url="https://project.supabase.test/", anon_key="anon-key")


@pytest.fixture
def fake_api():
    return FakeFinanceApi()


@pytest.fixture
def api_client(fake_api, api_settings):
    return FinanceApiClient(api_settings, transport=httpx.MockTransport(fake_api.handler))


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def fake_auth():
    return FakeAuthProvider()


@pytest.fixture
def provider(fake_auth, audit_logger):
    return SessionProvider(fake_auth, audit_logger)


@pytest.fixture
def session():
    return Session("token-ana", ANA)
