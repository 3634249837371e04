"""
Event listing.

Events are listed soonest first and formatted for display.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select

from ucconnect.models.database import Event, to_naive_utc

logger = logging.getLogger(__name__)

LOCATION_TBD = "Location TBD"


@dataclass
class EventDisplay:
    """An event with its display fields derived."""
    id: int
    title: str
    starts_at: datetime
    date: str
    time: str
    location: str
    description: str
    url: Optional[str]


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Prefix https:// when a URL has no scheme. Blank URLs become None."""
    if not url or not url.strip():
        return None
    url = url.strip()
    if "://" in url or url.startswith("mailto:"):
        return url
    return f"https://{url}"


def format_event(event) -> EventDisplay:
    return EventDisplay(
        id=event.id,
        title=event.title,
        starts_at=event.starts_at,
        date=event.starts_at.strftime("%b %d, %Y"),
        time=event.starts_at.strftime("%I:%M %p"),
        location=(event.location or "").strip() or LOCATION_TBD,
        description=event.description or "",
        url=normalize_url(event.url),
    )


def sort_events(events) -> list:
    """Soonest first; ties keep the order they came in."""
    return sorted(events, key=lambda e: e.starts_at)


class EventService:
    """Service for campus events."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def list_events(self, upcoming_only: bool = False, now: Optional[datetime] = None) -> list[Event]:
        with self.session_factory() as session:
            query = select(Event)
            if upcoming_only and now is not None:
                query = query.where(Event.starts_at >= to_naive_utc(now))
            events = session.execute(query).scalars().all()
        return sort_events(events)

    def create_event(
        self,
        creator_id: str,
        title: str,
        starts_at: datetime,
        location: str,
        description: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Event:
        with self.session_factory() as session:
            event = Event(
                title=title.strip(),
                starts_at=to_naive_utc(starts_at),
                location=location.strip(),
                description=(description or "").strip() or None,
                url=normalize_url(url),
                created_by=creator_id,
            )
            session.add(event)
            session.commit()
            session.refresh(event)
            logger.info("Event %s created by %s", event.id, creator_id)
            return event
