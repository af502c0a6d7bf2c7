"""Tests for the Supabase auth collaborator and auth-state observers."""

import asyncio
import json

import httpx
import pytest

from compliance_report.services.auth_service import (
    AuthSession,
    AuthUnavailableError,
    AuthStateNotifier,
    RoleWatcher,
    SupabaseAuthService,
)

SUPABASE_URL = "https://project.supabase.example"


def _auth(handler) -> SupabaseAuthService:
    return SupabaseAuthService(
        supabase_url=SUPABASE_URL,
        anon_key="anon-key",
        transport=httpx.MockTransport(handler),
    )


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def _supabase_handler(request: httpx.Request) -> httpx.Response:
    assert request.headers["apikey"] == "anon-key"
    token = request.headers.get("Authorization", "")

    if request.url.path == "/auth/v1/user":
        if token == "Bearer good-token":
            return httpx.Response(200, json={"id": "user-1", "email": "owner@example.com"})
        return httpx.Response(401, json={"msg": "invalid JWT"})

    if request.url.path == "/rest/v1/rpc/has_role":
        body = json.loads(request.content)
        return httpx.Response(200, json=body == {"_user_id": "user-1", "_role": "admin"})

    return httpx.Response(404)


class TestSupabaseAuthService:
    def test_valid_session(self):
        session = asyncio.run(_auth(_supabase_handler).get_session("good-token"))
        assert session == AuthSession(user_id="user-1", email="owner@example.com", access_token="good-token")

    def test_rejected_token(self):
        assert asyncio.run(_auth(_supabase_handler).get_session("bad-token")) is None

    def test_missing_token_makes_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert asyncio.run(_auth(handler).get_session(None)) is None

    def test_unconfigured_service(self):
        auth = SupabaseAuthService(supabase_url="", anon_key="")
        assert not auth.is_available
        assert asyncio.run(auth.get_session("good-token")) is None
        assert asyncio.run(auth.has_role("user-1", "admin", "good-token")) is False

    def test_has_role(self):
        auth = _auth(_supabase_handler)
        assert asyncio.run(auth.has_role("user-1", "admin", "good-token")) is True
        assert asyncio.run(auth.has_role("user-1", "editor", "good-token")) is False

    def test_has_role_error_is_false(self):
        auth = _auth(lambda request: httpx.Response(403, json={"message": "permission denied"}))
        assert asyncio.run(auth.has_role("user-1", "admin", "good-token")) is False

    def test_has_role_non_boolean_is_false(self):
        auth = _auth(lambda request: httpx.Response(200, json=[{"has_role": True}]))
        assert asyncio.run(auth.has_role("user-1", "admin", "good-token")) is False


@pytest.mark.usefixtures("no_retry_wait")
class TestSupabaseOutage:
    def test_unreachable_session_lookup(self):
        with pytest.raises(AuthUnavailableError):
            asyncio.run(_auth(_unreachable).get_session("good-token"))

    def test_server_error_session_lookup(self):
        auth = _auth(lambda request: httpx.Response(503, text="upstream connect error"))
        with pytest.raises(AuthUnavailableError):
            asyncio.run(auth.get_session("good-token"))

    def test_non_json_session_body(self):
        auth = _auth(lambda request: httpx.Response(200, text="<html>Bad gateway</html>"))
        with pytest.raises(AuthUnavailableError):
            asyncio.run(auth.get_session("good-token"))

    def test_unreachable_role_check(self):
        with pytest.raises(AuthUnavailableError):
            asyncio.run(_auth(_unreachable).has_role("user-1", "admin", "good-token"))

    def test_server_error_role_check(self):
        auth = _auth(lambda request: httpx.Response(500, json={"message": "internal error"}))
        with pytest.raises(AuthUnavailableError):
            asyncio.run(auth.has_role("user-1", "admin", "good-token"))


class TestAuthStateNotifier:
    def test_emit_reaches_subscribers(self):
        notifier = AuthStateNotifier()
        events = []

        async def on_change(event, session):
            events.append((event, session))

        notifier.subscribe(on_change)
        asyncio.run(notifier.emit("SIGNED_OUT", None))
        assert events == [("SIGNED_OUT", None)]

    def test_unsubscribe(self):
        notifier = AuthStateNotifier()
        events = []

        async def on_change(event, session):
            events.append(event)

        subscription = notifier.subscribe(on_change)
        subscription.unsubscribe()
        subscription.unsubscribe()

        asyncio.run(notifier.emit("SIGNED_IN", None))
        assert events == []
        assert notifier.subscriber_count == 0
        assert subscription.active is False


class TestRoleWatcher:
    def test_starts_loading(self, fake_auth):
        watcher = RoleWatcher(fake_auth, AuthStateNotifier())
        assert watcher.is_loading
        assert watcher.has_role is False

    def test_tracks_sign_in_and_out(self, fake_auth, admin):
        notifier = AuthStateNotifier()
        watcher = RoleWatcher(fake_auth, notifier)

        asyncio.run(notifier.emit("SIGNED_IN", admin))
        assert watcher.has_role is True
        assert watcher.is_loading is False

        asyncio.run(notifier.emit("SIGNED_OUT", None))
        assert watcher.has_role is False

    def test_non_admin(self, fake_auth, alice):
        watcher = RoleWatcher(fake_auth, AuthStateNotifier())
        assert asyncio.run(watcher.refresh(alice)) is False

    def test_close_stops_updates(self, fake_auth, admin):
        notifier = AuthStateNotifier()
        watcher = RoleWatcher(fake_auth, notifier)
        watcher.close()

        assert notifier.subscriber_count == 0
        asyncio.run(notifier.emit("SIGNED_IN", admin))
        assert watcher.has_role is False
