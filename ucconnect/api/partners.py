"""
Find Partners API Router.

Searches other students' profiles by free text, optionally scoped to
courses, interests or skills. Students already connected with the caller
are left out.
"""
from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from ucconnect.api.auth import get_current_identity
from ucconnect.api.deps import get_connection_service, get_profile_service
from ucconnect.api.rate_limit import search_limit
from ucconnect.api.schemas import PartnerResponse
from ucconnect.services.auth_service import Identity
from ucconnect.services.connection_service import ConnectionService
from ucconnect.services.profile_service import ProfileService
from ucconnect.services.views import (
    ProfileCard,
    accepted_partner_ids,
    match_percentage,
    relationship_statuses,
    search_profiles,
)

router = APIRouter(prefix="/partners", tags=["partners"])


@router.get("", response_model=list[PartnerResponse])
@search_limit
async def find_partners(
    request: Request,
    q: Optional[str] = Query(None, max_length=200, description="Search text"),
    scope: Literal["all", "courses", "interests", "skills"] = Query("all"),
    identity: Identity = Depends(get_current_identity),
    profiles: ProfileService = Depends(get_profile_service),
    connections: ConnectionService = Depends(get_connection_service),
):
    """Search for study partners."""
    me = profiles.find_profile(identity.user_id)
    candidates = profiles.list_profiles(exclude_user_id=identity.user_id)
    rows = connections.list_connections_for_user(identity.user_id)
    statuses = relationship_statuses(rows, identity.user_id)
    connected = accepted_partner_ids(rows, identity.user_id)

    matches = search_profiles(candidates, q, scope, exclude_user_ids=connected)

    results = []
    for profile in matches:
        card = ProfileCard.from_profile(profile)
        results.append(PartnerResponse(
            **asdict(card),
            match_percentage=match_percentage(me, card) if me else 0,
            relationship=statuses.get(card.user_id),
        ))
    return results
