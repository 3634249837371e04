"""
Auth API Router.

Handles:
- Password sign-in and sign-up against Supabase
- Sign-out
- Session lookup with the post-login redirect
"""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ucconnect.api.auth import (
    SessionRequired,
    bearer_token,
    get_auth_client,
    get_current_identity,
)
from ucconnect.api.deps import get_profile_service
from ucconnect.api.rate_limit import auth_limit
from ucconnect.api.schemas import (
    LoginRequest,
    LoginResponse,
    SessionResponse,
    SignupRequest,
    SignupResponse,
)
from ucconnect.services.auth_service import Identity, SupabaseAuthClient
from ucconnect.services.errors import AuthError
from ucconnect.services.profile_service import ProfileService, is_profile_complete

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@auth_limit
async def login(
    request: Request,
    body: LoginRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Sign in with email and password.

    Sends complete profiles on to partner search and everyone else to
    profile setup.
    """
    try:
        session = await auth_client.sign_in(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    profile = profiles.find_profile(session.identity.user_id)
    redirect = "/find-partners" if is_profile_complete(profile) else "/profile-setup"

    return LoginResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user_id=session.identity.user_id,
        email=session.identity.email,
        redirect=redirect,
    )


@router.post("/signup", response_model=SignupResponse)
@auth_limit
async def signup(
    request: Request,
    body: SignupRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    """Register a new account."""
    try:
        identity = await auth_client.sign_up(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Registered user %s", identity.user_id)
    return SignupResponse(user_id=identity.user_id, email=identity.email)


@router.post("/logout")
async def logout(
    authorization: str = Header(None),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    """Revoke the current session."""
    token = bearer_token(authorization)
    if token is None:
        raise SessionRequired()

    try:
        await auth_client.sign_out(token)
    except AuthError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {"success": True, "redirect": "/login"}


@router.get("/session", response_model=SessionResponse)
async def get_session(
    identity: Identity = Depends(get_current_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Current identity and where to send it: dashboard, or setup if incomplete."""
    complete = is_profile_complete(profiles.find_profile(identity.user_id))
    return SessionResponse(
        user_id=identity.user_id,
        email=identity.email,
        profile_complete=complete,
        redirect="/dashboard" if complete else "/profile-setup",
    )
