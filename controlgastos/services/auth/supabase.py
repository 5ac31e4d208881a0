"""
Supabase Auth Provider

Talks to the Supabase auth (GoTrue) REST endpoints directly:
- POST /auth/v1/signup
- POST /auth/v1/token?grant_type=password
- POST /auth/v1/logout

Every request carries the project's anon key in the `apikey` header.
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from controlgastos.config import AuthSettings, get_settings
from controlgastos.models.finance import AuthGrant, UserIdentity
from controlgastos.services.auth.interface import AuthProviderInterface
from controlgastos.errors import AuthError, TransportError


logger = structlog.get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """GoTrue uses several error shapes depending on the endpoint and version."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value

    return f"Authentication failed with status {response.status_code}"


class SupabaseAuthProvider(AuthProviderInterface):
    """Supabase implementation of the auth provider."""

    def __init__(
        self,
        settings: Optional[AuthSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_seconds: float = 10.0,
    ):
        self._settings = settings or get_settings().auth
        self._transport = transport
        self._timeout = timeout_seconds

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._settings.url}/auth/v1",
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "apikey": self._settings.anon_key,
                "Content-Type": "application/json",
            },
        )

    async def _post(
        self,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        access_token: Optional[str] = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
        try:
            async with self._build_client() as client:
                response = await client.post(path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Auth provider unreachable: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.info("auth_request_rejected", path=path, status_code=response.status_code)
            raise AuthError(response.status_code, message, path=path)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Auth provider returned a non-JSON body for {path}") from e

    async def sign_up(self, email: str, password: str, full_name: str) -> None:
        await self._post(
            "/signup",
            json={
                "email": email.strip(),
                "password": password,
                "data": {"full_name": full_name.strip()},
            },
        )

    @retry(
        retry=retry_if_exception_type(TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    async def sign_in(self, email: str, password: str) -> AuthGrant:
        body = await self._post(
            "/token",
            params={"grant_type": "password"},
            json={"email": email.strip(), "password": password},
        )
        try:
            user = body["user"]
            metadata = user.get("user_metadata") or {}
            return AuthGrant(
                access_token=body["access_token"],
                refresh_token=body.get("refresh_token"),
                expires_in=body.get("expires_in"),
                user=UserIdentity(
                    id=str(user["id"]),
                    email=user["email"],
                    full_name=metadata.get("full_name"),
                ),
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise TransportError(f"Unexpected sign-in response: {e}") from e

    async def sign_out(self, access_token: str) -> None:
        await self._post("/logout", access_token=access_token)
