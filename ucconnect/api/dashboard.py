"""
Dashboard and Leaderboard API Router.
"""
from fastapi import APIRouter, Depends

from ucconnect.api.auth import get_current_identity
from ucconnect.api.deps import (
    get_app_settings,
    get_connection_service,
    get_event_service,
    get_profile_service,
)
from ucconnect.api.schemas import (
    ActivityResponse,
    DashboardResponse,
    DashboardStatsResponse,
    EventResponse,
    LeaderboardEntryResponse,
    ProfileResponse,
)
from ucconnect.config import Settings
from ucconnect.models.database import utcnow
from ucconnect.services.auth_service import Identity
from ucconnect.services.connection_service import ConnectionService
from ucconnect.services.event_service import EventService, format_event
from ucconnect.services.profile_service import ProfileService
from ucconnect.services.views import build_leaderboard, dashboard_stats, recent_activity

router = APIRouter(tags=["dashboard"])


def _leaderboard(connections: ConnectionService, profiles: ProfileService, limit: int):
    accepted = connections.list_all_accepted()
    participants = {c.user_id for c in accepted} | {c.connected_user_id for c in accepted}
    return build_leaderboard(accepted, profiles.get_profiles(participants), limit=limit)


@router.get("/leaderboard", response_model=list[LeaderboardEntryResponse])
async def get_leaderboard(
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
    settings: Settings = Depends(get_app_settings),
):
    """Students with the most accepted connections."""
    entries = _leaderboard(connections, profiles, settings.leaderboard_size)
    return [LeaderboardEntryResponse.model_validate(e) for e in entries]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    identity: Identity = Depends(get_current_identity),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
    events: EventService = Depends(get_event_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Everything the dashboard shows.

    A missing profile aborts with the "needs setup" 404 before anything
    else is read.
    """
    profile = profiles.get_profile(identity.user_id)

    rows = connections.list_connections_for_user(identity.user_id)
    others = profiles.get_profiles({c.other_party(identity.user_id) for c in rows})

    now = utcnow()
    upcoming = events.list_events(upcoming_only=True, now=now)
    stats = dashboard_stats(rows, upcoming, identity.user_id, now=now)

    return DashboardResponse(
        profile=ProfileResponse.from_profile(profile),
        stats=DashboardStatsResponse.model_validate(stats),
        upcoming_events=[EventResponse.model_validate(format_event(e)) for e in upcoming],
        activities=[
            ActivityResponse.model_validate(a)
            for a in recent_activity(rows, others, identity.user_id)
        ],
        leaderboard=[
            LeaderboardEntryResponse.model_validate(e)
            for e in _leaderboard(connections, profiles, settings.leaderboard_size)
        ],
    )
