"""
Supabase Auth client.

Wraps the hosted auth REST API (GoTrue) over httpx:
- Resolving the identity behind an access token
- Password sign-in and sign-up
- Sign-out
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ucconnect.config import Settings
from ucconnect.services.errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated user behind a session."""
    user_id: str
    email: Optional[str] = None


@dataclass
class AuthSession:
    """Tokens returned by a successful sign-in."""
    access_token: str
    refresh_token: Optional[str]
    expires_in: Optional[int]
    identity: Identity


def _identity_from_user(user: dict) -> Optional[Identity]:
    user_id = user.get("id") if user else None
    if not user_id:
        return None
    return Identity(user_id=user_id, email=user.get("email"))


class SupabaseAuthClient:
    """Thin async client for Supabase Auth."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["SupabaseAuthClient"]:
        """Build a client, or None if Supabase isn't configured."""
        if not settings.auth_configured:
            return None
        return cls(settings.supabase_url, settings.supabase_anon_key, settings.auth_timeout)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            headers={"apikey": self.anon_key, "Content-Type": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def get_user(self, access_token: str) -> Optional[Identity]:
        """
        Resolve the identity behind an access token.

        Returns None when there is no valid session. Transport errors are
        treated the same as "no session".
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    "/user", headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            logger.warning("Session lookup failed: %s", e)
            return None

        if response.status_code != 200:
            return None

        return _identity_from_user(response.json())

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/token",
                    params={"grant_type": "password"},
                    json={"email": email, "password": password},
                )
        except httpx.HTTPError as e:
            logger.error("Sign-in request failed: %s", e)
            raise AuthError("Authentication service unavailable") from e

        if response.status_code != 200:
            raise AuthError(_error_message(response, "Invalid login credentials"))

        data = response.json()
        identity = _identity_from_user(data.get("user") or {})
        if not data.get("access_token") or identity is None:
            raise AuthError("Malformed response from authentication service")

        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            identity=identity,
        )

    async def sign_up(self, email: str, password: str) -> Identity:
        """Register a new account. Email confirmation is handled by Supabase."""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/signup", json={"email": email, "password": password}
                )
        except httpx.HTTPError as e:
            logger.error("Sign-up request failed: %s", e)
            raise AuthError("Authentication service unavailable") from e

        if response.status_code not in (200, 201):
            raise AuthError(_error_message(response, "Sign up failed"))

        data = response.json()
        # Supabase returns either the user or {user, session} depending on confirmation settings
        identity = _identity_from_user(data.get("user") or data)
        if identity is None:
            raise AuthError("Malformed response from authentication service")
        return identity

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind access_token."""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/logout", headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            logger.error("Sign-out request failed: %s", e)
            raise AuthError("Authentication service unavailable") from e

        if response.status_code not in (200, 204):
            raise AuthError(_error_message(response, "Sign out failed"))


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    return data.get("error_description") or data.get("msg") or data.get("message") or default
