"""Tests for the session context, the session provider and the Supabase auth provider."""

import asyncio
import json

import httpx
import pytest

from controlgastos.audit import AuditLogger
from controlgastos.errors import AuthError, SessionExpiredError, TransportError
from controlgastos.models.audit import AuditEventType
from controlgastos.models.finance import AuthGrant
from controlgastos.services.auth import SupabaseAuthProvider
from controlgastos.session import Session, SessionProvider

from conftest import ANA, LUIS


class TestSession:
    """Tests for the Session lifecycle."""

    @pytest.mark.asyncio
    async def test_run_returns_result(self, session):
        """Test requests run normally while the session is active."""
        async def request():
            return 42
        assert await session.run(request()) == 42
        assert session.pending_count == 0

    @pytest.mark.asyncio
    async def test_run_after_invalidate(self, session):
        """Test nothing runs on an invalidated session."""
        session.invalidate()

        async def request():
            raise AssertionError("should not run")

        with pytest.raises(SessionExpiredError):
            await session.run(request())

    @pytest.mark.asyncio
    async def test_invalidate_cancels_in_flight(self, session):
        """Test invalidation cancels requests still waiting."""
        gate = asyncio.Event()

        async def request():
            await gate.wait()
            return "late"

        task = asyncio.ensure_future(session.run(request()))
        await asyncio.sleep(0)
        assert session.pending_count == 1

        assert session.invalidate() == 1
        with pytest.raises(SessionExpiredError):
            await task
        assert not session.is_active

    def test_auth_headers(self, session):
        """Test the bearer header."""
        assert session.auth_headers == {"Authorization": "Bearer token-ana"}

    def test_from_grant(self):
        """Test a session is built from an auth grant."""
        s = Session.from_grant(AuthGrant(access_token="abc", user=ANA, refresh_token="r"))
        assert s.access_token == "abc"
        assert s.user.email == ANA.email
        assert s.is_active


class TestSessionProvider:
    """Tests for sign-in, sign-out and publishing."""

    @pytest.mark.asyncio
    async def test_sign_in_publishes_once(self, provider):
        """Test each listener sees the new session exactly once."""
        seen = []

        async def listener(session):
            seen.append(session)

        provider.subscribe(listener)
        session = await provider.sign_in(ANA.email, "secret")

        assert seen == [session]
        assert provider.session is session
        assert session.user.id == ANA.id

    @pytest.mark.asyncio
    async def test_bad_credentials(self, provider):
        """Test a rejected sign-in leaves no session and publishes nothing."""
        seen = []

        async def listener(session):
            seen.append(session)

        provider.subscribe(listener)
        with pytest.raises(AuthError) as exc:
            await provider.sign_in(ANA.email, "wrong")
        assert exc.value.message == "Invalid login credentials"
        assert provider.session is None
        assert seen == []

    @pytest.mark.asyncio
    async def test_sign_in_replaces_previous_session(self, provider):
        """Test only one session is ever active."""
        first = await provider.sign_in(ANA.email, "secret")
        second = await provider.sign_in(LUIS.email, "secret")
        assert not first.is_active
        assert second.is_active

    @pytest.mark.asyncio
    async def test_sign_out(self, provider, fake_auth, audit_logger):
        """Test sign-out invalidates, publishes None and audits."""
        seen = []

        async def listener(session):
            seen.append(session)

        session = await provider.sign_in(ANA.email, "secret")
        provider.subscribe(listener)
        await provider.sign_out()

        assert seen == [None]
        assert not session.is_active
        assert fake_auth.signed_out == [session.access_token]
        types = [e.event_type for e in audit_logger.history]
        assert types == [AuditEventType.SIGNED_IN, AuditEventType.SIGNED_OUT]

    @pytest.mark.asyncio
    async def test_sign_out_survives_provider_failure(self, provider, fake_auth):
        """Test the local session ends even if the provider logout fails."""
        fake_auth.fail_sign_out = True
        session = await provider.sign_in(ANA.email, "secret")
        await provider.sign_out()
        assert provider.session is None
        assert not session.is_active

    @pytest.mark.asyncio
    async def test_unsubscribe(self, provider):
        """Test an unsubscribed listener is not called."""
        seen = []

        async def listener(session):
            seen.append(session)

        unsubscribe = provider.subscribe(listener)
        unsubscribe()
        await provider.sign_in(ANA.email, "secret")
        assert seen == []


class TestSupabaseAuthProvider:
    """Tests for the GoTrue REST calls."""

    def _provider(self, auth_settings, handler):
        return SupabaseAuthProvider(auth_settings, transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_sign_in(self, auth_settings):
        """Test the password grant request and response mapping."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "access_token": "jwt",
                "refresh_token": "refresh",
                "expires_in": 3600,
                "user": {
                    "id": "user-ana",
                    "email": "ana@example.com",
                    "user_metadata": {"full_name": "Ana"},
                },
            })

        grant = await self._provider(auth_settings, handler).sign_in("ana@example.com", "secret")

        request = seen[0]
        assert str(request.url) == "https://project.supabase.test/auth/v1/token?grant_type=password"
        assert request.headers["apikey"] == "anon-key"
        assert json.loads(request.content) == {"email": "ana@example.com", "password": "secret"}
        assert grant.access_token == "jwt"
        assert grant.user.display_name == "Ana"

    @pytest.mark.asyncio
    async def test_sign_in_rejected(self, auth_settings):
        """Test the provider's message is kept."""
        def handler(request):
            return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

        with pytest.raises(AuthError) as exc:
            await self._provider(auth_settings, handler).sign_in("ana@example.com", "nope")
        assert exc.value.message == "Invalid login credentials"

    @pytest.mark.asyncio
    async def test_sign_up_sends_full_name_metadata(self, auth_settings):
        """Test the full name travels as user metadata."""
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "new-user"})

        await self._provider(auth_settings, handler).sign_up("new@example.com", "pw", " New Person ")
        assert seen == [{
            "email": "new@example.com",
            "password": "pw",
            "data": {"full_name": "New Person"},
        }]

    @pytest.mark.asyncio
    async def test_sign_out_uses_bearer(self, auth_settings):
        """Test logout is authenticated with the session token."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(204)

        await self._provider(auth_settings, handler).sign_out("jwt")
        assert seen[0].url.path == "/auth/v1/logout"
        assert seen[0].headers["Authorization"] == "Bearer jwt"

    @pytest.mark.asyncio
    async def test_unreachable(self, auth_settings):
        """Test network failures map to TransportError."""
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(TransportError):
            await self._provider(auth_settings, handler).sign_up("a@b.co", "pw", "A")


class TestAuditLogger:
    """Tests for the audit logger."""

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        """Test only the most recent events are kept."""
        logger = AuditLogger(max_history=2)
        for _ in range(3):
            await logger.log_sign_up_completed(email="a@b.co")
        assert len(logger.history) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
