"""
Study group listing and search.
"""
from typing import Optional

from sqlalchemy import select

from ucconnect.models.database import StudyGroup


def filter_study_groups(groups, query: Optional[str]) -> list:
    """Case-insensitive substring match on name, course or description."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(groups)
    return [
        g for g in groups
        if needle in (g.name or "").lower()
        or needle in (g.course or "").lower()
        or needle in (g.description or "").lower()
    ]


class StudyGroupService:

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def list_study_groups(self, query: Optional[str] = None) -> list[StudyGroup]:
        with self.session_factory() as session:
            groups = session.execute(
                select(StudyGroup).order_by(StudyGroup.meeting_time, StudyGroup.id)
            ).scalars().all()
        return filter_study_groups(groups, query)
