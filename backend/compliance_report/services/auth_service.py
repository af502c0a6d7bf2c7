"""
Authentication collaborator.

Sessions and roles live in Supabase: the session comes from GoTrue
(`GET /auth/v1/user` with the caller's access token) and roles from the
`has_role(_user_id, _role)` Postgres function exposed over PostgREST RPC.

AuthStateNotifier / RoleWatcher replace a global auth-state subscription with
explicit registration: every subscriber gets a Subscription and must call
`unsubscribe()` (or RoleWatcher.close()) when it is torn down.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog

from compliance_report.clients.base_client import BaseAPIClient
from compliance_report.config import settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: str
    access_token: str


class AuthUnavailableError(Exception):
    """Supabase could not be reached or failed; the caller may retry."""


def _unavailable(e: Exception) -> AuthUnavailableError:
    logger.warning("Supabase auth unavailable", error=str(e))
    return AuthUnavailableError("Authentication service is unavailable, please retry")


class AuthService(Protocol):
    async def get_session(self, access_token: str | None) -> AuthSession | None: ...

    async def has_role(self, user_id: str, role: str, access_token: str) -> bool: ...


class SupabaseAuthService(BaseAPIClient):
    """AuthService backed by Supabase GoTrue + the has_role RPC."""

    def __init__(
        self,
        supabase_url: str | None = None,
        anon_key: str | None = None,
        **kwargs,
    ):
        self.supabase_url = (supabase_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key or settings.supabase_anon_key
        kwargs.setdefault("rate_limit_delay", 0.0)
        super().__init__(self.supabase_url, headers={"apikey": self.anon_key}, **kwargs)

    @property
    def is_available(self) -> bool:
        return bool(self.supabase_url and self.anon_key)

    async def get_session(self, access_token: str | None) -> AuthSession | None:
        """Resolve an access token to a session. Invalid or expired tokens give None.

        Raises AuthUnavailableError when Supabase is down (transport error, 5xx
        or a non-JSON body) so callers can tell an outage from a bad token.
        """
        if not access_token or not self.is_available:
            return None
        try:
            user = await self.get(
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (401, 403):
                logger.debug("Session rejected", status=e.response.status_code)
                return None
            if e.response.status_code >= 500:
                raise _unavailable(e) from e
            raise
        except (httpx.TransportError, ValueError) as e:
            raise _unavailable(e) from e

        user_id = user.get("id") if isinstance(user, dict) else None
        if not user_id:
            return None
        return AuthSession(user_id=user_id, email=user.get("email") or "", access_token=access_token)

    async def has_role(self, user_id: str, role: str, access_token: str) -> bool:
        if not self.is_available:
            return False
        try:
            result = await self.post(
                "/rest/v1/rpc/has_role",
                json={"_user_id": user_id, "_role": role},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code >= 500:
                raise _unavailable(e) from e
            logger.warning("Role check failed", user_id=user_id, role=role, status=e.response.status_code)
            return False
        except (httpx.TransportError, ValueError) as e:
            raise _unavailable(e) from e
        return result is True


# ---------------------------------------------------------------------------
# Auth-state observers
# ---------------------------------------------------------------------------

AuthStateCallback = Callable[[str, AuthSession | None], Awaitable[None]]


class Subscription:
    """Handle returned by AuthStateNotifier.subscribe()."""

    def __init__(self, notifier: AuthStateNotifier, callback: AuthStateCallback):
        self._notifier = notifier
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._notifier._remove(self._callback)
            self.active = False


class AuthStateNotifier:
    """Fan-out of auth-state events ("SIGNED_IN", "SIGNED_OUT", "TOKEN_REFRESHED")."""

    def __init__(self):
        self._callbacks: list[AuthStateCallback] = []

    def subscribe(self, callback: AuthStateCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: AuthStateCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    async def emit(self, event: str, session: AuthSession | None) -> None:
        for callback in list(self._callbacks):
            await callback(event, session)


class RoleWatcher:
    """Tracks whether the current session holds *role*, re-checking on auth events."""

    def __init__(self, auth: AuthService, notifier: AuthStateNotifier, role: str = "admin"):
        self.auth = auth
        self.role = role
        self.has_role = False
        self.is_loading = True
        self._subscription = notifier.subscribe(self._on_auth_change)

    async def refresh(self, session: AuthSession | None) -> bool:
        if session is None:
            self.has_role = False
        else:
            self.has_role = await self.auth.has_role(session.user_id, self.role, session.access_token)
        self.is_loading = False
        return self.has_role

    async def _on_auth_change(self, event: str, session: AuthSession | None) -> None:
        await self.refresh(session)

    def close(self) -> None:
        self._subscription.unsubscribe()
