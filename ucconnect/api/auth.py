"""
Session guard dependencies for FastAPI.

Resolves the Supabase session behind a bearer token. Requests without a
valid session get a 401 telling the client to go to the login page, and
no further data access happens.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from ucconnect.services.auth_service import Identity, SupabaseAuthClient

LOGIN_PATH = "/login"


class SessionRequired(Exception):
    """No valid session. Handled by redirecting the client to the login page."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail)
        self.detail = detail


def get_auth_client(request: Request) -> SupabaseAuthClient:
    client = request.app.state.auth_client
    if client is None:
        raise HTTPException(status_code=500, detail="Supabase auth not configured")
    return client


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


async def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Identity:
    """Identity of the signed-in user. Raises SessionRequired otherwise."""
    token = bearer_token(authorization)
    if token is None:
        raise SessionRequired()

    identity = await auth_client.get_user(token)
    if identity is None:
        raise SessionRequired("Invalid or expired session")

    # Used by the rate limiter to key per user
    request.state.user = {"id": identity.user_id}
    return identity
