"""
Profile store.

Reads and upserts the single profile each user owns, and derives profile
completeness from its fields.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ucconnect.models.database import Profile, SkillMaster, utcnow
from ucconnect.services.errors import ProfileNotFound

logger = logging.getLogger(__name__)

# Interests offered on profile setup: (id, label)
INTERESTS = [
    ("hackathons", "Hackathons"),
    ("group-studying", "Group Studying"),
    ("tutoring", "Tutoring"),
    ("case-competitions", "Case Competitions"),
    ("research", "Research"),
    ("startups", "Startups"),
]

STRING_FIELDS = ("full_name", "faculty", "major", "bio")
LIST_FIELDS = ("courses", "skills", "interests")
TAG_FIELDS = ("skills", "interests")


def is_profile_complete(profile) -> bool:
    """A profile is complete once name, faculty, major and at least one course are set."""
    if profile is None:
        return False
    return bool(
        (profile.full_name or "").strip()
        and (profile.faculty or "").strip()
        and (profile.major or "").strip()
        and any((c or "").strip() for c in (profile.courses or []))
    )


def profile_completion(profile) -> int:
    """Percentage of the seven profile fields that are filled in."""
    if profile is None:
        return 0
    fields = [
        profile.full_name,
        profile.faculty,
        profile.major,
        len(profile.courses or []) > 0,
        profile.bio,
        len(profile.skills or []) > 0,
        len(profile.interests or []) > 0,
    ]
    completed = sum(1 for f in fields if f)
    return round(completed / len(fields) * 100)


def parse_course_list(text: str) -> list[str]:
    """Split "CPSC 471, MATH 267" into ["CPSC 471", "MATH 267"]."""
    return [c.strip() for c in (text or "").split(",") if c.strip()]


def normalize_profile_fields(fields: dict) -> dict:
    """
    Clean user input before it is written.

    Trims strings, trims list entries and drops empty ones, and removes
    duplicate skill/interest tags keeping first occurrence.
    """
    cleaned = {}
    for name in STRING_FIELDS:
        if name in fields:
            value = fields[name]
            cleaned[name] = value.strip() if isinstance(value, str) else value
    if cleaned.get("bio") == "":
        cleaned["bio"] = None

    for name in LIST_FIELDS:
        if name not in fields:
            continue
        values = fields[name]
        if isinstance(values, str):
            values = values.split(",")
        items = [v.strip() for v in (values or []) if isinstance(v, str) and v.strip()]
        if name in TAG_FIELDS:
            items = list(dict.fromkeys(items))
        cleaned[name] = items
    return cleaned


class ProfileService:
    """Service for reading and writing student profiles."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_profile(self, user_id: str) -> Profile:
        """Get the profile owned by user_id, or raise ProfileNotFound."""
        with self.session_factory() as session:
            profile = self._find_row(session, user_id)

        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    def find_profile(self, user_id: str) -> Optional[Profile]:
        try:
            return self.get_profile(user_id)
        except ProfileNotFound:
            return None

    def upsert_profile(self, user_id: str, fields: dict, email: Optional[str] = None) -> Profile:
        """
        Insert the profile for user_id, or update it if it already exists.

        If another request inserts the same user's profile first, the insert
        hits the unique user_id and is retried once as an update.

        Returns the stored row as re-read after commit.
        """
        values = normalize_profile_fields(fields)
        try:
            return self._save_profile(user_id, values, email)
        except IntegrityError:
            logger.info("Profile for user %s created concurrently, updating instead", user_id)
            return self._save_profile(user_id, values, email)

    def _find_row(self, session, user_id: str) -> Optional[Profile]:
        return session.execute(
            select(Profile).where(Profile.user_id == user_id)
        ).scalar_one_or_none()

    def _save_profile(self, user_id: str, values: dict, email: Optional[str]) -> Profile:
        with self.session_factory() as session:
            profile = self._find_row(session, user_id)

            if profile is None:
                profile = Profile(
                    user_id=user_id,
                    full_name="",
                    faculty="",
                    major="",
                    courses=[],
                    skills=[],
                    interests=[],
                )
                session.add(profile)
                logger.info("Creating profile for user %s", user_id)
            else:
                profile.updated_at = utcnow()

            for name, value in values.items():
                setattr(profile, name, value)
            if email:
                profile.email = email

            session.commit()
            session.refresh(profile)
            return profile

    def list_profiles(self, exclude_user_id: Optional[str] = None) -> list[Profile]:
        """All profiles, optionally without the caller's own."""
        with self.session_factory() as session:
            query = select(Profile).order_by(Profile.full_name, Profile.user_id)
            if exclude_user_id:
                query = query.where(Profile.user_id != exclude_user_id)
            return list(session.execute(query).scalars().all())

    def get_profiles(self, user_ids) -> list[Profile]:
        """Profiles for the given users. Users without a profile are skipped."""
        user_ids = list(set(user_ids))
        if not user_ids:
            return []
        with self.session_factory() as session:
            return list(session.execute(
                select(Profile).where(Profile.user_id.in_(user_ids))
            ).scalars().all())

    def list_skills(self) -> list[str]:
        """The skills catalog, alphabetical."""
        with self.session_factory() as session:
            return list(session.execute(
                select(SkillMaster.skill_name).order_by(SkillMaster.skill_name)
            ).scalars().all())
