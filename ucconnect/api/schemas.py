"""
Pydantic schemas for API request/response models.
"""
from datetime import datetime
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator

from ucconnect.models.database import to_naive_utc
from ucconnect.services.profile_service import (
    is_profile_complete,
    parse_course_list,
    profile_completion,
)
from ucconnect.services.views import ConnectionView, ProfileCard


# =============================================================================
# Auth
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SignupRequest(LoginRequest):
    password: str = Field(..., min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: str
    email: Optional[str] = None
    redirect: str  # /find-partners or /profile-setup


class SignupResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    redirect: str = "/login"


class SessionResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    profile_complete: bool
    redirect: str  # /dashboard or /profile-setup


# =============================================================================
# Profiles
# =============================================================================

class ProfileUpdateRequest(BaseModel):
    """Profile setup form. Courses may be sent as a comma-separated string."""
    full_name: str = Field("", max_length=200)
    faculty: str = Field("", max_length=200)
    major: str = Field("", max_length=200)
    courses: Union[list[str], str] = Field(default_factory=list)
    bio: Optional[str] = Field(None, max_length=2000)
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)

    @field_validator("courses")
    @classmethod
    def split_courses(cls, v: Union[list[str], str]) -> list[str]:
        if isinstance(v, str):
            return parse_course_list(v)
        return v


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: Optional[str] = None
    full_name: str
    faculty: str
    major: str
    courses: list[str] = []
    bio: Optional[str] = None
    skills: list[str] = []
    interests: list[str] = []
    is_complete: bool
    completion: int  # percent
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    redirect: Optional[str] = None

    @classmethod
    def from_profile(cls, profile, redirect: Optional[str] = None) -> "ProfileResponse":
        return cls(
            user_id=profile.user_id,
            email=profile.email,
            full_name=profile.full_name or "",
            faculty=profile.faculty or "",
            major=profile.major or "",
            courses=list(profile.courses or []),
            bio=profile.bio,
            skills=list(profile.skills or []),
            interests=list(profile.interests or []),
            is_complete=is_profile_complete(profile),
            completion=profile_completion(profile),
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            redirect=redirect,
        )


class InterestOption(BaseModel):
    id: str
    label: str


class ProfileOptionsResponse(BaseModel):
    skills: list[str]
    interests: list[InterestOption]


class ProfileCardResponse(BaseModel):
    """Profile attributes shown on connection and partner cards."""
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str
    faculty: str = ""
    major: str = ""
    courses: list[str] = []
    skills: list[str] = []
    interests: list[str] = []
    bio: Optional[str] = None


class PartnerResponse(ProfileCardResponse):
    match_percentage: int
    relationship: Optional[str] = None  # request_sent, request_received, declined


# =============================================================================
# Connections
# =============================================================================

ConnectionTab = Literal["requests", "sent", "connections"]


class ConnectionCreateRequest(BaseModel):
    recipient_id: str = Field(..., min_length=1, max_length=64)


class ConnectionResponse(BaseModel):
    id: int
    requester_id: str
    recipient_id: str
    status: str
    created_at: Optional[datetime] = None
    other_user_id: str
    display_name: str
    profile: Optional[ProfileCardResponse] = None
    mailto: Optional[str] = None
    redirect: Optional[str] = None

    @classmethod
    def from_view(cls, view: ConnectionView, redirect: Optional[str] = None) -> "ConnectionResponse":
        return cls(
            id=view.id,
            requester_id=view.requester_id,
            recipient_id=view.recipient_id,
            status=view.status,
            created_at=view.created_at,
            other_user_id=view.other_user_id,
            display_name=view.display_name,
            profile=card_response(view.profile),
            mailto=view.mailto,
            redirect=redirect,
        )


def card_response(card: Optional[ProfileCard]) -> Optional[ProfileCardResponse]:
    if card is None:
        return None
    return ProfileCardResponse.model_validate(card)


class ConnectionTabsResponse(BaseModel):
    tab: ConnectionTab
    requests: list[ConnectionResponse]
    sent: list[ConnectionResponse]
    connections: list[ConnectionResponse]
    counts: dict[str, int]


# =============================================================================
# Leaderboard & dashboard
# =============================================================================

class LeaderboardEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    user_id: str
    display_name: str
    faculty: str
    major: str
    connection_count: int


class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    active_connections: int
    pending_requests: int
    upcoming_events: int


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    description: str
    timestamp: Optional[datetime] = None


# =============================================================================
# Events
# =============================================================================

class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    starts_at: datetime
    location: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    url: Optional[str] = Field(None, max_length=500)

    @field_validator("title", "location")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be blank")
        return v

    @field_validator("starts_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    starts_at: datetime
    date: str  # e.g. "Mar 14, 2025"
    time: str  # e.g. "06:30 PM"
    location: str
    description: str
    url: Optional[str] = None


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    stats: DashboardStatsResponse
    upcoming_events: list[EventResponse]
    activities: list[ActivityResponse]
    leaderboard: list[LeaderboardEntryResponse]


# =============================================================================
# Study groups
# =============================================================================

class StudyGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    course: str
    description: str
    meeting_time: Optional[datetime] = None
    location: Optional[str] = None
    max_participants: int
    current_participants: int
    created_by: Optional[str] = None
    is_full: bool
