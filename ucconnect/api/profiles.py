"""
Profile API Router.

Handles:
- Reading and saving the caller's own profile (profile setup)
- Viewing another student's profile
- Skills and interests catalogs for the setup form
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from ucconnect.api.auth import get_current_identity
from ucconnect.api.deps import get_profile_service
from ucconnect.api.rate_limit import write_limit
from ucconnect.api.schemas import (
    InterestOption,
    ProfileOptionsResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from ucconnect.services.auth_service import Identity
from ucconnect.services.errors import ProfileNotFound
from ucconnect.services.profile_service import (
    INTERESTS,
    ProfileService,
    is_profile_complete,
)

router = APIRouter(prefix="/profiles", tags=["profiles"])


def profile_not_found(e: ProfileNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


@router.get("/options", response_model=ProfileOptionsResponse)
async def get_profile_options(
    identity: Identity = Depends(get_current_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Skills and interests a student can pick from."""
    return ProfileOptionsResponse(
        skills=profiles.list_skills(),
        interests=[InterestOption(id=i, label=label) for i, label in INTERESTS],
    )


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    identity: Identity = Depends(get_current_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Get the caller's profile.

    A missing profile is not a failure: the 404 carries code
    "profile_not_found" and points the client at profile setup.
    """
    # ProfileNotFound is rendered by the app-level handler
    profile = profiles.get_profile(identity.user_id)
    return ProfileResponse.from_profile(profile)


@router.put("/me", response_model=ProfileResponse)
@write_limit
async def save_my_profile(
    request: Request,
    body: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Create or update the caller's profile."""
    profile = profiles.upsert_profile(
        identity.user_id, body.model_dump(), email=identity.email
    )
    redirect = "/find-partners" if is_profile_complete(profile) else "/profile-setup"
    return ProfileResponse.from_profile(profile, redirect=redirect)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    """View another student's profile."""
    try:
        profile = profiles.get_profile(user_id)
    except ProfileNotFound as e:
        raise profile_not_found(e)
    return ProfileResponse.from_profile(profile)
