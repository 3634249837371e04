"""
Seed demo data.

Seeds:
1. The skills catalog
2. Sample study groups
3. Sample campus events

Run with: python -m ucconnect.scripts.seed_demo
"""
from datetime import datetime, timedelta

from sqlalchemy import select

from ucconnect.models.database import (
    create_db_engine, create_session_factory, init_db,
    SkillMaster, StudyGroup, Event, utcnow,
)

SKILLS = [
    "C++", "Data Analysis", "Financial Modeling", "Java", "JavaScript",
    "Machine Learning", "Public Speaking", "Python", "React", "Research Writing",
    "SQL", "UI/UX Design",
]

STUDY_GROUPS = [
    {
        "name": "CPSC 471 Database Study Group",
        "course": "CPSC 471",
        "description": "Weekly study sessions focusing on database design and SQL",
        "meeting_time": datetime(2024, 4, 15, 15, 0),
        "location": "TFDL 3rd Floor Study Room 2",
        "max_participants": 6,
        "current_participants": 4,
        "created_by": "John Smith",
    },
    {
        "name": "Calculus II Group",
        "course": "MATH 267",
        "description": "Practice problems and concept review for upcoming midterm",
        "meeting_time": datetime(2024, 4, 16, 14, 0),
        "location": "MS Building Room 317",
        "max_participants": 5,
        "current_participants": 3,
        "created_by": "Sarah Chen",
    },
    {
        "name": "ENGG 201 Problem Solving",
        "course": "ENGG 201",
        "description": "Working through practice problems and past exams",
        "meeting_time": datetime(2024, 4, 17, 16, 0),
        "location": "ENG Building Study Area",
        "max_participants": 8,
        "current_participants": 5,
        "created_by": "Michael Brown",
    },
]


def seed_skills(session_factory) -> int:
    print("Seeding skills catalog...")
    with session_factory() as session:
        existing = set(session.execute(select(SkillMaster.skill_name)).scalars().all())
        created = 0
        for name in SKILLS:
            if name in existing:
                continue
            session.add(SkillMaster(skill_name=name))
            created += 1
        session.commit()
    print(f"Created {created} skills")
    return created


def seed_study_groups(session_factory) -> int:
    print("Seeding study groups...")
    with session_factory() as session:
        existing = set(session.execute(select(StudyGroup.name)).scalars().all())
        created = 0
        for data in STUDY_GROUPS:
            if data["name"] in existing:
                continue
            session.add(StudyGroup(**data))
            created += 1
        session.commit()
    print(f"Created {created} study groups")
    return created


def seed_events(session_factory) -> int:
    """Add a few events over the coming weeks, unless events already exist."""
    print("Seeding events...")
    with session_factory() as session:
        if session.execute(select(Event.id).limit(1)).first():
            print("Events already present, skipping")
            return 0

        start = utcnow().replace(hour=18, minute=0, second=0, microsecond=0)
        events = [
            Event(
                title="CPSC Club Hack Night",
                starts_at=start + timedelta(days=3),
                location="ICT 121",
                description="Bring a laptop and an idea.",
                url="calgaryhacks.com",
            ),
            Event(
                title="Case Competition Info Session",
                starts_at=start + timedelta(days=7),
                location="Scurfield Hall",
                description="Meet the Haskayne case team.",
            ),
            Event(
                title="Research Mixer",
                starts_at=start + timedelta(days=14),
                location=None,
                description="Find an undergraduate research supervisor.",
            ),
        ]
        session.add_all(events)
        session.commit()
    print(f"Created {len(events)} events")
    return len(events)


def main(session_factory=None):
    if session_factory is None:
        engine = create_db_engine()
        init_db(engine)
        session_factory = create_session_factory(engine)

    seed_skills(session_factory)
    seed_study_groups(session_factory)
    seed_events(session_factory)
    print("\nDone!")


if __name__ == "__main__":
    main()
