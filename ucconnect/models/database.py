"""
SQLAlchemy database models for UCalgaryConnect.

Tables:
- profiles: one academic/interest profile per auth identity
- connections: directed connection requests between two users
- events: scheduled campus events
- skills_master: catalog of selectable skills
- study_groups: course study groups
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import (
    create_engine,
    Integer,
    String,
    Text,
    DateTime,
    Index,
    JSON,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    sessionmaker,
    Mapped,
    mapped_column,
)
from sqlalchemy.pool import StaticPool

from ucconnect.config import Settings, get_settings


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns below."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# =============================================================================
# Profiles
# =============================================================================

class Profile(Base):
    """
    A student's self-reported academic and interest record.

    Keyed by the auth identity (user_id). Completeness is always derived from
    the stored fields, never persisted.
    """
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255))

    full_name: Mapped[str] = mapped_column(String(200), default="")
    faculty: Mapped[str] = mapped_column(String(200), default="")
    major: Mapped[str] = mapped_column(String(200), default="")
    courses: Mapped[list] = mapped_column(JSON, default=list)  # ["CPSC 471", "MATH 267"]
    bio: Mapped[Optional[str]] = mapped_column(Text)
    skills: Mapped[list] = mapped_column(JSON, default=list)
    interests: Mapped[list] = mapped_column(JSON, default=list)  # interest ids, e.g. "hackathons"

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Profile(user_id='{self.user_id}', name='{self.full_name}', major='{self.major}')>"


# =============================================================================
# Connections
# =============================================================================

CONNECTION_PENDING = "pending"
CONNECTION_ACCEPTED = "accepted"
CONNECTION_DECLINED = "declined"
CONNECTION_STATUSES = (CONNECTION_PENDING, CONNECTION_ACCEPTED, CONNECTION_DECLINED)


def make_pair_key(user_a: str, user_b: str) -> str:
    """Canonical key for the unordered pair {user_a, user_b}."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class Connection(Base):
    """
    A directed connection request from user_id (requester) to
    connected_user_id (recipient).

    pair_key is unique, so at most one relationship exists per unordered pair
    regardless of direction.
    """
    __tablename__ = "connections"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    connected_user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    pair_key: Mapped[str] = mapped_column(String(140), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CONNECTION_PENDING)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("pair_key", name="uq_connections_pair"),
        CheckConstraint("user_id <> connected_user_id", name="ck_connections_not_self"),
        CheckConstraint(
            "status IN (%s)" % ", ".join(f"'{s}'" for s in CONNECTION_STATUSES),
            name="ck_connections_status",
        ),
        Index("ix_connections_status", "status"),
    )

    @property
    def requester_id(self) -> str:
        return self.user_id

    @property
    def recipient_id(self) -> str:
        return self.connected_user_id

    def other_party(self, user_id: str) -> str:
        """The user on the other side of this connection from user_id."""
        return self.connected_user_id if self.user_id == user_id else self.user_id

    def __repr__(self) -> str:
        return f"<Connection(id={self.id}, {self.user_id} -> {self.connected_user_id}, status='{self.status}')>"


# =============================================================================
# Events
# =============================================================================

class Event(Base):
    """A scheduled campus event. Read-only from the student's perspective."""
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    location: Mapped[Optional[str]] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    url: Mapped[Optional[str]] = mapped_column(String(500))
    created_by: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title[:30]}', starts_at={self.starts_at})>"


# =============================================================================
# Catalogs
# =============================================================================

class SkillMaster(Base):
    """Catalog of skills a student can pick on profile setup."""
    __tablename__ = "skills_master"

    id: Mapped[int] = mapped_column(primary_key=True)
    skill_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class StudyGroup(Base):
    """A study group for a course."""
    __tablename__ = "study_groups"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    course: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    meeting_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    location: Mapped[Optional[str]] = mapped_column(String(200))
    max_participants: Mapped[int] = mapped_column(Integer, default=6)
    current_participants: Mapped[int] = mapped_column(Integer, default=0)
    created_by: Mapped[Optional[str]] = mapped_column(String(200))

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants

    def __repr__(self) -> str:
        return f"<StudyGroup(id={self.id}, course='{self.course}', name='{self.name[:30]}')>"


# =============================================================================
# Database Engine and Session Management
# =============================================================================

def create_db_engine(url: Optional[str] = None, settings: Optional[Settings] = None):
    """Create a synchronous database engine."""
    settings = settings or get_settings()
    url = url or settings.database_url

    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.debug,
        )

    return create_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.debug,
    )


def create_session_factory(engine):
    """Create a session factory bound to engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine):
    """Initialize database, creating all tables."""
    Base.metadata.create_all(engine)
