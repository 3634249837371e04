"""
Tests for the derived views: connection tabs, leaderboard, partner search,
match percentage and dashboard feed. Pure functions, no database.
"""
from datetime import datetime, timedelta

import pytest

from ucconnect.models.database import Connection, Event, Profile
from ucconnect.services.views import (
    UNKNOWN_USER,
    accepted_partner_ids,
    attach_profiles,
    build_connection_tabs,
    build_leaderboard,
    count_accepted,
    dashboard_stats,
    match_percentage,
    partition_connections,
    recent_activity,
    relationship_statuses,
    search_profiles,
)

T0 = datetime(2025, 1, 6, 9, 0)


def conn(id, requester, recipient, status="pending", minutes=0):
    return Connection(
        id=id,
        user_id=requester,
        connected_user_id=recipient,
        status=status,
        created_at=T0 + timedelta(minutes=minutes),
    )


def profile(user_id, name, courses=(), skills=(), interests=(), bio=None, email=None):
    return Profile(
        user_id=user_id,
        full_name=name,
        faculty="Science",
        major="Computer Science",
        courses=list(courses),
        skills=list(skills),
        interests=list(interests),
        bio=bio,
        email=email,
    )


# --------------------------------------------------------------------------
# Partitioning
# --------------------------------------------------------------------------

class TestPartition:

    def test_pending_request_shows_as_received_for_recipient_and_sent_for_requester(self):
        rows = [conn(1, "a", "b")]

        for_b = partition_connections(rows, "b")
        for_a = partition_connections(rows, "a")

        assert [c.id for c in for_b.received] == [1]
        assert for_b.sent == [] and for_b.active == []
        assert [c.id for c in for_a.sent] == [1]
        assert for_a.received == [] and for_a.active == []

    def test_accepted_is_active_for_both_sides(self):
        rows = [conn(1, "a", "b", "accepted")]
        for user in ("a", "b"):
            part = partition_connections(rows, user)
            assert [c.id for c in part.active] == [1]
            assert part.received == [] and part.sent == []

    def test_declined_is_hidden_everywhere(self):
        rows = [conn(1, "a", "b", "declined")]
        for user in ("a", "b"):
            part = partition_connections(rows, user)
            assert part.received == part.sent == part.active == []

    def test_rows_not_involving_user_are_ignored(self):
        rows = [conn(1, "x", "y", "accepted"), conn(2, "x", "y")]
        part = partition_connections(rows, "a")
        assert part.received == part.sent == part.active == []


class TestAttachProfiles:

    def test_joins_other_party(self):
        rows = [conn(1, "a", "b"), conn(2, "c", "a", "accepted")]
        views = attach_profiles(rows, [profile("b", "Bob"), profile("c", "Carol")], "a")

        assert [v.other_user_id for v in views] == ["b", "c"]
        assert [v.display_name for v in views] == ["Bob", "Carol"]

    def test_missing_profile_is_none_with_fallback_name(self):
        views = attach_profiles([conn(1, "a", "ghost")], [], "a")

        assert views[0].profile is None
        assert views[0].display_name == UNKNOWN_USER
        assert views[0].mailto is None

    def test_mailto_uses_counterpart_email(self):
        views = attach_profiles([conn(1, "a", "b")], [profile("b", "Bob", email="bob@ucalgary.ca")], "a")
        assert views[0].mailto == "mailto:bob@ucalgary.ca"

    def test_tabs(self):
        rows = [
            conn(1, "b", "a"),
            conn(2, "a", "c"),
            conn(3, "a", "d", "accepted"),
            conn(4, "e", "a", "declined"),
        ]
        tabs = build_connection_tabs(rows, [profile("b", "Bob")], "a")

        assert [v.id for v in tabs.requests] == [1]
        assert [v.id for v in tabs.sent] == [2]
        assert [v.id for v in tabs.connections] == [3]
        assert tabs.requests[0].display_name == "Bob"


class TestRelationships:

    def test_statuses_from_callers_side(self):
        rows = [
            conn(1, "a", "b"),
            conn(2, "c", "a"),
            conn(3, "a", "d", "accepted"),
            conn(4, "e", "a", "declined"),
        ]
        assert relationship_statuses(rows, "a") == {
            "b": "request_sent",
            "c": "request_received",
            "d": "connected",
            "e": "declined",
        }
        assert accepted_partner_ids(rows, "a") == {"d"}


# --------------------------------------------------------------------------
# Leaderboard
# --------------------------------------------------------------------------

class TestLeaderboard:

    def test_each_accepted_row_counts_once_per_participant(self):
        rows = [
            conn(1, "x", "y", "accepted"),
            conn(2, "x", "z", "accepted"),
            conn(3, "y", "w", "pending"),
            conn(4, "w", "z", "declined"),
        ]
        counts = count_accepted(rows)
        assert counts == {"x": 2, "y": 1, "z": 1}

    def test_triangle_gives_three_way_tie(self):
        rows = [
            conn(1, "x", "y", "accepted"),
            conn(2, "y", "z", "accepted"),
            conn(3, "x", "z", "accepted"),
        ]
        board = build_leaderboard(rows, [profile("x", "Xia"), profile("y", "Yusuf"), profile("z", "Zoe")])

        assert {e.user_id: e.connection_count for e in board} == {"x": 2, "y": 2, "z": 2}
        assert [e.rank for e in board] == [1, 1, 1]

    def test_sorted_descending_and_truncated(self):
        rows = [
            conn(1, "a", "b", "accepted"),
            conn(2, "a", "c", "accepted"),
            conn(3, "a", "d", "accepted"),
            conn(4, "b", "c", "accepted"),
        ]
        board = build_leaderboard(rows, [profile(u, u.upper()) for u in "abcd"])

        assert len(board) == 3
        assert board[0].user_id == "a" and board[0].connection_count == 3
        assert [e.connection_count for e in board] == [3, 2, 2]
        assert [e.rank for e in board] == [1, 2, 2]

    def test_ties_are_ordered_by_name_regardless_of_input_order(self):
        rows = [conn(1, "m", "n", "accepted")]
        people = [profile("n", "Amy"), profile("m", "Zed")]

        forward = build_leaderboard(rows, people)
        backward = build_leaderboard(list(reversed(rows)), list(reversed(people)))

        assert [e.display_name for e in forward] == ["Amy", "Zed"]
        assert [e.user_id for e in forward] == [e.user_id for e in backward]

    def test_user_without_profile_still_ranked(self):
        board = build_leaderboard([conn(1, "a", "ghost", "accepted")], [profile("a", "Ann")])
        names = {e.user_id: e.display_name for e in board}
        assert names["ghost"] == UNKNOWN_USER

    def test_custom_limit(self):
        rows = [conn(i, "hub", f"u{i}", "accepted") for i in range(1, 6)]
        assert len(build_leaderboard(rows, [], limit=5)) == 5

    def test_empty(self):
        assert build_leaderboard([], []) == []


# --------------------------------------------------------------------------
# Find partners
# --------------------------------------------------------------------------

class TestSearch:

    @pytest.fixture
    def people(self):
        return [
            profile("a", "Alice", courses=["CPSC 471", "MATH 267"], skills=["Python"], interests=["research"]),
            profile("b", "Bob", courses=["cpsc 331"], skills=["C++"], interests=["hackathons"]),
            profile("c", "Carol", courses=["ACCT 217"], skills=["CPSC tutoring"], interests=["startups"],
                    bio="Ex-CPSC student"),
        ]

    def test_course_scope_matches_case_insensitively(self, people):
        results = search_profiles(people, "CPSC", "courses")
        assert [p.user_id for p in results] == ["a", "b"]

    def test_all_scope_includes_name_bio_and_tags(self, people):
        assert [p.user_id for p in search_profiles(people, "cpsc", "all")] == ["a", "b", "c"]
        assert [p.user_id for p in search_profiles(people, "alice")] == ["a"]
        assert [p.user_id for p in search_profiles(people, "ex-cpsc")] == ["c"]

    def test_skills_and_interests_scopes(self, people):
        assert [p.user_id for p in search_profiles(people, "c++", "skills")] == ["b"]
        assert [p.user_id for p in search_profiles(people, "HACK", "interests")] == ["b"]
        assert search_profiles(people, "Alice", "skills") == []

    def test_empty_query_matches_everyone(self, people):
        assert len(search_profiles(people, "", "courses")) == 3
        assert len(search_profiles(people, None)) == 3
        assert len(search_profiles(people, "   ")) == 3

    def test_excluded_users_dropped(self, people):
        results = search_profiles(people, "", exclude_user_ids={"a", "c"})
        assert [p.user_id for p in results] == ["b"]

    def test_unknown_scope(self, people):
        with pytest.raises(ValueError):
            search_profiles(people, "x", "bio")


class TestMatchPercentage:

    def test_identical_profiles(self):
        me = profile("a", "A", courses=["CPSC 471"], skills=["Python"], interests=["research"])
        other = profile("b", "B", courses=["CPSC 471"], skills=["Python"], interests=["research"])
        assert match_percentage(me, other) == 100

    def test_courses_weigh_double(self):
        me = profile("a", "A", courses=["CPSC 471"], skills=["Python"])
        other = profile("b", "B", courses=["CPSC 471"], skills=["Java"])
        # 2 of (2 + 1) points
        assert match_percentage(me, other) == 67

    def test_half_rounds_up(self):
        me = profile("a", "A", skills=[f"skill-{i}" for i in range(8)])
        other = profile("b", "B", skills=["skill-3"])
        # 1 of 8 points is 12.5%
        assert match_percentage(me, other) == 13

    def test_nothing_to_compare(self):
        assert match_percentage(profile("a", "A"), profile("b", "B")) == 0


# --------------------------------------------------------------------------
# Dashboard
# --------------------------------------------------------------------------

class TestDashboard:

    def test_stats(self):
        rows = [
            conn(1, "b", "a"),
            conn(2, "a", "c"),
            conn(3, "a", "d", "accepted"),
            conn(4, "e", "a", "accepted"),
            conn(5, "f", "a", "declined"),
        ]
        now = datetime(2025, 3, 1, 12, 0)
        events = [
            Event(id=1, title="Past", starts_at=now - timedelta(days=1)),
            Event(id=2, title="Soon", starts_at=now + timedelta(hours=1)),
        ]
        stats = dashboard_stats(rows, events, "a", now=now)

        assert stats.active_connections == 2
        assert stats.pending_requests == 1
        assert stats.upcoming_events == 1

    def test_recent_activity_newest_first(self):
        rows = [
            conn(1, "b", "a", minutes=0),
            conn(2, "a", "c", "accepted", minutes=5),
            conn(3, "a", "d", minutes=10),
            conn(4, "e", "a", "declined", minutes=15),
        ]
        people = [profile("b", "Bob"), profile("c", "Carol")]

        feed = recent_activity(rows, people, "a")

        assert [a.description for a in feed] == [
            f"Connection request sent to {UNKNOWN_USER}",
            "Connected with Carol",
            "New connection request from Bob",
        ]

    def test_recent_activity_limit(self):
        rows = [conn(i, "a", f"u{i}", minutes=i) for i in range(1, 9)]
        feed = recent_activity(rows, [], "a", limit=5)
        assert [a.id for a in feed] == [8, 7, 6, 5, 4]
