"""
Events API Router.
"""
from fastapi import APIRouter, Depends, Query, Request

from ucconnect.api.auth import get_current_identity
from ucconnect.api.deps import get_event_service
from ucconnect.api.rate_limit import write_limit
from ucconnect.api.schemas import EventCreateRequest, EventResponse
from ucconnect.models.database import utcnow
from ucconnect.services.auth_service import Identity
from ucconnect.services.event_service import EventService, format_event

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[EventResponse])
async def list_events(
    upcoming: bool = Query(False, description="Only events that haven't started yet"),
    identity: Identity = Depends(get_current_identity),
    events: EventService = Depends(get_event_service),
):
    """Events, soonest first."""
    rows = events.list_events(upcoming_only=upcoming, now=utcnow())
    return [EventResponse.model_validate(format_event(e)) for e in rows]


@router.post("", response_model=EventResponse, status_code=201)
@write_limit
async def create_event(
    request: Request,
    body: EventCreateRequest,
    identity: Identity = Depends(get_current_identity),
    events: EventService = Depends(get_event_service),
):
    """Post a new event."""
    event = events.create_event(
        creator_id=identity.user_id,
        title=body.title,
        starts_at=body.starts_at,
        location=body.location,
        description=body.description,
        url=body.url,
    )
    return EventResponse.model_validate(format_event(event))
