"""
Derived views over connections, profiles and events.

Pure functions: they take collections already fetched by the services and
return read-only projections (connection tabs, leaderboard, partner search,
dashboard stats). Nothing here touches the database.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from ucconnect.models.database import (
    CONNECTION_ACCEPTED,
    CONNECTION_DECLINED,
    CONNECTION_PENDING,
    utcnow,
)

UNKNOWN_USER = "Unknown user"

SEARCH_SCOPES = ("all", "courses", "interests", "skills")


# =============================================================================
# Records
# =============================================================================

@dataclass
class ProfileCard:
    """Display attributes of a profile, as joined onto other views."""
    user_id: str
    full_name: str
    faculty: str = ""
    major: str = ""
    courses: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    interests: list[str] = field(default_factory=list)
    bio: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_profile(cls, profile) -> "ProfileCard":
        return cls(
            user_id=profile.user_id,
            full_name=profile.full_name or "",
            faculty=profile.faculty or "",
            major=profile.major or "",
            courses=list(profile.courses or []),
            skills=list(profile.skills or []),
            interests=list(profile.interests or []),
            bio=profile.bio,
            email=profile.email,
        )


@dataclass
class ConnectionView:
    """A connection seen from one user's side, joined to the other party's profile."""
    id: int
    requester_id: str
    recipient_id: str
    status: str
    created_at: Optional[datetime]
    other_user_id: str
    profile: Optional[ProfileCard]

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.full_name:
            return self.profile.full_name
        return UNKNOWN_USER

    @property
    def mailto(self) -> Optional[str]:
        if self.profile and self.profile.email:
            return f"mailto:{self.profile.email}"
        return None


@dataclass
class ConnectionPartition:
    received: list = field(default_factory=list)
    sent: list = field(default_factory=list)
    active: list = field(default_factory=list)


@dataclass
class ConnectionTabs:
    """The three lists shown on the connections page."""
    requests: list[ConnectionView]
    sent: list[ConnectionView]
    connections: list[ConnectionView]


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    display_name: str
    faculty: str
    major: str
    connection_count: int


@dataclass
class DashboardStats:
    active_connections: int
    pending_requests: int
    upcoming_events: int


@dataclass
class Activity:
    id: int
    type: str
    description: str
    timestamp: Optional[datetime]


# =============================================================================
# Connection tabs
# =============================================================================

def partition_connections(connections: Iterable, user_id: str) -> ConnectionPartition:
    """
    Split a user's connections into received/sent pending requests and
    active (accepted) connections. Declined rows appear nowhere.
    """
    partition = ConnectionPartition()
    for conn in connections:
        if conn.status == CONNECTION_PENDING:
            if conn.connected_user_id == user_id:
                partition.received.append(conn)
            elif conn.user_id == user_id:
                partition.sent.append(conn)
        elif conn.status == CONNECTION_ACCEPTED:
            if user_id in (conn.user_id, conn.connected_user_id):
                partition.active.append(conn)
    return partition


def _profiles_by_user(profiles: Iterable) -> dict[str, ProfileCard]:
    cards = {}
    for profile in profiles:
        card = profile if isinstance(profile, ProfileCard) else ProfileCard.from_profile(profile)
        cards[card.user_id] = card
    return cards


def attach_profiles(connections: Iterable, profiles: Iterable, user_id: str) -> list[ConnectionView]:
    """Join each connection to the other party's profile (None when missing)."""
    by_user = profiles if isinstance(profiles, dict) else _profiles_by_user(profiles)
    views = []
    for conn in connections:
        other = conn.connected_user_id if conn.user_id == user_id else conn.user_id
        views.append(ConnectionView(
            id=conn.id,
            requester_id=conn.user_id,
            recipient_id=conn.connected_user_id,
            status=conn.status,
            created_at=conn.created_at,
            other_user_id=other,
            profile=by_user.get(other),
        ))
    return views


def build_connection_tabs(connections: Iterable, profiles: Iterable, user_id: str) -> ConnectionTabs:
    partition = partition_connections(connections, user_id)
    by_user = _profiles_by_user(profiles)
    return ConnectionTabs(
        requests=attach_profiles(partition.received, by_user, user_id),
        sent=attach_profiles(partition.sent, by_user, user_id),
        connections=attach_profiles(partition.active, by_user, user_id),
    )


def relationship_statuses(connections: Iterable, user_id: str) -> dict[str, str]:
    """
    Map each other user to how they relate to user_id:
    "connected", "request_sent", "request_received" or "declined".
    """
    statuses = {}
    for conn in connections:
        if user_id not in (conn.user_id, conn.connected_user_id):
            continue
        other = conn.connected_user_id if conn.user_id == user_id else conn.user_id
        if conn.status == CONNECTION_ACCEPTED:
            statuses[other] = "connected"
        elif conn.status == CONNECTION_DECLINED:
            statuses[other] = "declined"
        elif conn.user_id == user_id:
            statuses[other] = "request_sent"
        else:
            statuses[other] = "request_received"
    return statuses


def accepted_partner_ids(connections: Iterable, user_id: str) -> set[str]:
    """Users in an accepted connection with user_id."""
    return {
        other for other, status in relationship_statuses(connections, user_id).items()
        if status == "connected"
    }


# =============================================================================
# Leaderboard
# =============================================================================

def count_accepted(connections: Iterable) -> Counter:
    """Tally, per user, how many accepted connections they take part in."""
    counts = Counter()
    for conn in connections:
        if conn.status != CONNECTION_ACCEPTED:
            continue
        counts[conn.user_id] += 1
        counts[conn.connected_user_id] += 1
    return counts


def build_leaderboard(connections: Iterable, profiles: Iterable, limit: int = 3) -> list[LeaderboardEntry]:
    """
    Rank users by number of accepted connections, system-wide.

    Ties sort by display name then user id, and share a rank.
    """
    counts = count_accepted(connections)
    by_user = _profiles_by_user(profiles)

    rows = []
    for user_id, count in counts.items():
        card = by_user.get(user_id)
        name = card.full_name if card and card.full_name else UNKNOWN_USER
        rows.append((user_id, name, card, count))

    rows.sort(key=lambda r: (-r[3], r[1].lower(), r[0]))

    entries = []
    previous_count = None
    rank = 0
    for position, (user_id, name, card, count) in enumerate(rows[:limit], start=1):
        if count != previous_count:
            rank = position
            previous_count = count
        entries.append(LeaderboardEntry(
            rank=rank,
            user_id=user_id,
            display_name=name,
            faculty=card.faculty if card else "",
            major=card.major if card else "",
            connection_count=count,
        ))
    return entries


# =============================================================================
# Find partners
# =============================================================================

def searchable_text(profile, scope: str = "all") -> str:
    """The text a search query is matched against for the given scope."""
    if scope == "courses":
        parts = list(profile.courses or [])
    elif scope == "interests":
        parts = list(profile.interests or [])
    elif scope == "skills":
        parts = list(profile.skills or [])
    elif scope == "all":
        parts = [
            profile.full_name or "",
            profile.bio or "",
            *(profile.courses or []),
            *(profile.skills or []),
            *(profile.interests or []),
        ]
    else:
        raise ValueError(f"Unknown search scope: {scope!r}")
    return " ".join(parts)


def search_profiles(
    profiles: Iterable,
    query: Optional[str],
    scope: str = "all",
    exclude_user_ids: Iterable[str] = (),
) -> list:
    """Case-insensitive substring search over profiles. Empty query matches all."""
    if scope not in SEARCH_SCOPES:
        raise ValueError(f"Unknown search scope: {scope!r}")

    excluded = set(exclude_user_ids)
    needle = (query or "").strip().lower()

    results = []
    for profile in profiles:
        if profile.user_id in excluded:
            continue
        if needle and needle not in searchable_text(profile, scope).lower():
            continue
        results.append(profile)
    return results


def match_percentage(me, partner) -> int:
    """
    How well partner matches me, 0-100.

    Shared courses count double; shared skills and interests count once.
    Each category is scored against the longer of the two lists.
    """
    match_points = 0
    total_points = 0

    for mine, theirs, weight in (
        (me.courses or [], partner.courses or [], 2),
        (me.skills or [], partner.skills or [], 1),
        (me.interests or [], partner.interests or [], 1),
    ):
        common = sum(1 for item in theirs if item in mine)
        match_points += common * weight
        total_points += max(len(mine), len(theirs)) * weight

    if total_points == 0:
        return 0
    # Halves round up
    return int(match_points * 100 / total_points + 0.5)


# =============================================================================
# Dashboard
# =============================================================================

def dashboard_stats(
    connections: Iterable,
    events: Iterable,
    user_id: str,
    now: Optional[datetime] = None,
) -> DashboardStats:
    now = now or utcnow()
    partition = partition_connections(connections, user_id)
    upcoming = sum(1 for e in events if e.starts_at >= now)
    return DashboardStats(
        active_connections=len(partition.active),
        pending_requests=len(partition.received),
        upcoming_events=upcoming,
    )


def recent_activity(connections: Iterable, profiles: Iterable, user_id: str, limit: int = 5) -> list[Activity]:
    """Newest-first feed of the user's connection activity."""
    views = [
        v for v in attach_profiles(connections, profiles, user_id)
        if v.status != CONNECTION_DECLINED
    ]
    views.sort(key=lambda v: (v.created_at or datetime.min, v.id), reverse=True)

    activities = []
    for view in views[:limit]:
        if view.status == CONNECTION_ACCEPTED:
            description = f"Connected with {view.display_name}"
        elif view.recipient_id == user_id:
            description = f"New connection request from {view.display_name}"
        else:
            description = f"Connection request sent to {view.display_name}"
        activities.append(Activity(
            id=view.id,
            type="connection",
            description=description,
            timestamp=view.created_at,
        ))
    return activities
