"""
Tests for the profile store and profile completeness.
"""
import pytest
from sqlalchemy import select, func

from ucconnect.models.database import Profile, SkillMaster
from ucconnect.services.errors import ProfileNotFound
from ucconnect.services.profile_service import (
    is_profile_complete,
    normalize_profile_fields,
    parse_course_list,
    profile_completion,
)

from conftest import complete_profile_fields


def count_profiles(session_factory) -> int:
    with session_factory() as session:
        return session.execute(select(func.count()).select_from(Profile)).scalar()


class TestCompleteness:

    @pytest.mark.parametrize("overrides,expected", [
        ({}, True),
        ({"full_name": ""}, False),
        ({"full_name": "   "}, False),
        ({"faculty": ""}, False),
        ({"major": ""}, False),
        ({"courses": []}, False),
        ({"skills": [], "interests": [], "bio": None}, True),
    ])
    def test_required_fields(self, overrides, expected):
        fields = complete_profile_fields("Ada", **overrides)
        assert is_profile_complete(Profile(user_id="u", **fields)) is expected

    def test_missing_profile_is_incomplete(self):
        assert is_profile_complete(None) is False

    def test_stored_profile_agrees_with_inline_computation(self, profiles):
        """Completeness read back from the store matches the same fields computed inline."""
        fields = complete_profile_fields("Ada", courses=[" ", ""])
        stored = profiles.upsert_profile("ada", fields)

        assert stored.courses == []
        assert is_profile_complete(stored) is False
        assert is_profile_complete(Profile(user_id="x", **normalize_profile_fields(fields))) is False

    def test_completion_percentage(self):
        full = Profile(user_id="u", **complete_profile_fields("Ada"))
        assert profile_completion(full) == 100

        partial = Profile(user_id="u", **complete_profile_fields(
            "Ada", bio=None, skills=[], interests=[]
        ))
        assert profile_completion(partial) == 57  # 4 of 7
        assert profile_completion(None) == 0


class TestNormalization:

    def test_parse_course_list(self):
        assert parse_course_list(" CPSC 471, ,MATH 267 ,") == ["CPSC 471", "MATH 267"]
        assert parse_course_list("") == []

    def test_trims_strings_and_drops_empty_entries(self):
        cleaned = normalize_profile_fields({
            "full_name": "  Ada Lovelace ",
            "faculty": "Science ",
            "major": " Math",
            "bio": "   ",
            "courses": [" CPSC 471", "", "  "],
            "skills": ["Python", " Python ", "", "SQL"],
            "interests": ["research", "research"],
        })
        assert cleaned == {
            "full_name": "Ada Lovelace",
            "faculty": "Science",
            "major": "Math",
            "bio": None,
            "courses": ["CPSC 471"],
            "skills": ["Python", "SQL"],
            "interests": ["research"],
        }

    def test_course_order_preserved(self):
        cleaned = normalize_profile_fields({"courses": ["MATH 267", "CPSC 471", "MATH 267"]})
        assert cleaned["courses"] == ["MATH 267", "CPSC 471", "MATH 267"]


class TestProfileService:

    def test_get_missing_profile(self, profiles):
        with pytest.raises(ProfileNotFound) as exc:
            profiles.get_profile("nobody")
        assert exc.value.code == "profile_not_found"
        assert profiles.find_profile("nobody") is None

    def test_upsert_inserts_then_updates(self, profiles, session_factory):
        created = profiles.upsert_profile("ada", complete_profile_fields("Ada"), email="ada@ucalgary.ca")
        assert created.full_name == "Ada"
        assert created.email == "ada@ucalgary.ca"

        updated = profiles.upsert_profile("ada", {"major": "Physics"})
        assert updated.id == created.id
        assert updated.major == "Physics"
        assert updated.full_name == "Ada"
        assert count_profiles(session_factory) == 1

    def test_upsert_is_idempotent(self, profiles, session_factory):
        fields = complete_profile_fields("Ada")
        first = profiles.upsert_profile("ada", fields)
        second = profiles.upsert_profile("ada", fields)

        assert count_profiles(session_factory) == 1
        assert first.id == second.id
        assert profiles.get_profile("ada").courses == fields["courses"]

    def test_concurrent_first_save_becomes_update(self, profiles, session_factory, monkeypatch):
        # Another request created the row between our lookup and our insert
        profiles.upsert_profile("ada", complete_profile_fields("Ada"))

        real_find = type(profiles)._find_row
        calls = []

        def stale_then_real(self, session, user_id):
            calls.append(user_id)
            if len(calls) == 1:
                return None
            return real_find(self, session, user_id)

        monkeypatch.setattr(type(profiles), "_find_row", stale_then_real)
        saved = profiles.upsert_profile("ada", {"major": "Physics"})

        assert len(calls) == 2
        assert saved.major == "Physics"
        assert saved.full_name == "Ada"
        assert count_profiles(session_factory) == 1

    def test_list_profiles_excludes_caller(self, profiles, students):
        ids = [p.user_id for p in profiles.list_profiles(exclude_user_id="alice")]
        assert sorted(ids) == ["bob", "carol"]

    def test_get_profiles_skips_missing(self, profiles, students):
        found = profiles.get_profiles(["alice", "ghost", "alice"])
        assert [p.user_id for p in found] == ["alice"]
        assert profiles.get_profiles([]) == []

    def test_list_skills_sorted(self, profiles, session_factory):
        with session_factory() as session:
            session.add_all([SkillMaster(skill_name="SQL"), SkillMaster(skill_name="Python")])
            session.commit()
        assert profiles.list_skills() == ["Python", "SQL"]
