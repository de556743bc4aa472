"""Tests for session reconstruction: grouping, ordering, duration bounds."""

import pytest
from datetime import datetime, timedelta, timezone

from insight_engine.events.store import EventRecord
from insight_engine.sessions.reconstructor import (
    GROUP_BY_SESSION,
    GROUP_BY_SESSION_DOMAIN,
    GROUP_BY_SESSION_DOMAIN_LICENSE,
    MAX_SESSION_SECONDS,
    Session,
    order_sessions,
    recent_conversations,
    reconstruct,
    session_duration,
)


T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_event(event_id, session_id, ts, role="user", domain="a.example.com",
               license_key="LIC-A", content="hi"):
    return EventRecord(
        id=event_id,
        session_id=session_id,
        license_key=license_key,
        domain=domain,
        user_id=None,
        conversation_id=session_id,
        role=role,
        content=content,
        intent_detected=None,
        timestamp=ts,
    )


# ── Duration ──


class TestSessionDuration:
    def test_single_instant_is_zero(self):
        assert session_duration(T0, T0) == 0

    def test_missing_bounds_are_zero(self):
        assert session_duration(None, T0) == 0
        assert session_duration(T0, None) == 0

    def test_negative_span_is_zero(self):
        assert session_duration(T0, T0 - timedelta(seconds=5)) == 0

    def test_normal_span(self):
        assert session_duration(T0, T0 + timedelta(minutes=5)) == 300

    def test_rounds_half_up(self):
        assert session_duration(T0, T0 + timedelta(milliseconds=1500)) == 2
        assert session_duration(T0, T0 + timedelta(milliseconds=400)) == 0

    def test_full_day_is_discarded(self):
        assert session_duration(T0, T0 + timedelta(seconds=MAX_SESSION_SECONDS)) == 0
        assert session_duration(T0, T0 + timedelta(days=3)) == 0

    def test_rounding_up_to_a_day_is_discarded(self):
        assert session_duration(T0, T0 + timedelta(seconds=86399.6)) == 0

    def test_just_under_a_day(self):
        assert session_duration(T0, T0 + timedelta(seconds=86399)) == 86399

    @pytest.mark.parametrize("seconds", [0, 0.2, 1, 59, 3600, 86398.9, 86400, 90000])
    def test_bounds_hold(self, seconds):
        d = session_duration(T0, T0 + timedelta(seconds=seconds))
        assert d == 0 or 0 < d < MAX_SESSION_SECONDS

    def test_session_property_uses_bounds(self):
        s = Session("s1", 2, T0, T0 + timedelta(days=2))
        assert s.duration == 0
        assert s.has_valid_duration is False
        assert s.last_activity == T0 + timedelta(days=2)


# ── Grouping ──


class TestReconstruct:
    def test_groups_by_session(self):
        events = [
            make_event("1", "s1", T0),
            make_event("2", "s1", T0 + timedelta(seconds=30), role="assistant"),
            make_event("3", "s2", T0 + timedelta(minutes=5)),
        ]
        sessions = reconstruct(events)
        assert [s.session_id for s in sessions] == ["s2", "s1"]
        s1 = sessions[1]
        assert s1.message_count == 2
        assert s1.start_time == T0
        assert s1.end_time == T0 + timedelta(seconds=30)
        assert s1.duration == 30

    def test_single_event_session_is_kept(self):
        sessions = reconstruct([make_event("1", "only", T0)])
        assert len(sessions) == 1
        assert sessions[0].message_count == 1
        assert sessions[0].duration == 0

    def test_events_without_session_are_skipped(self):
        sessions = reconstruct([make_event("1", None, T0), make_event("2", "s1", T0)])
        assert [s.session_id for s in sessions] == ["s1"]

    def test_unordered_input(self):
        events = [
            make_event("2", "s1", T0 + timedelta(minutes=2)),
            make_event("1", "s1", T0),
            make_event("3", "s1", T0 + timedelta(minutes=1)),
        ]
        s = reconstruct(events)[0]
        assert s.start_time == T0
        assert s.end_time == T0 + timedelta(minutes=2)

    def test_domain_grouping_splits_sessions(self):
        events = [
            make_event("1", "s1", T0, domain="a.example.com"),
            make_event("2", "s1", T0 + timedelta(seconds=10), domain="b.example.com"),
        ]
        assert len(reconstruct(events, GROUP_BY_SESSION)) == 1
        by_domain = reconstruct(events, GROUP_BY_SESSION_DOMAIN)
        assert len(by_domain) == 2
        assert {s.domain for s in by_domain} == {"a.example.com", "b.example.com"}

    def test_license_grouping_carries_license(self):
        events = [
            make_event("1", "s1", T0, license_key="LIC-A"),
            make_event("2", "s1", T0, license_key="LIC-B"),
        ]
        sessions = reconstruct(events, GROUP_BY_SESSION_DOMAIN_LICENSE)
        assert sorted(s.license_key for s in sessions) == ["LIC-A", "LIC-B"]

    def test_ties_ordered_by_group_key(self):
        events = [
            make_event("1", "s-b", T0),
            make_event("2", "s-a", T0),
            make_event("3", "s-c", T0),
        ]
        assert [s.session_id for s in reconstruct(events)] == ["s-a", "s-b", "s-c"]

    def test_limit(self):
        events = [make_event(str(i), f"s{i}", T0 + timedelta(minutes=i)) for i in range(5)]
        sessions = reconstruct(events, limit=2)
        assert [s.session_id for s in sessions] == ["s4", "s3"]

    def test_unsupported_grouping(self):
        with pytest.raises(ValueError):
            reconstruct([], ("domain",))

    def test_empty(self):
        assert reconstruct([]) == []


class TestOrderSessions:
    def test_missing_end_time_sorts_last(self):
        sessions = [
            Session("s1", 1, None, None),
            Session("s2", 1, T0, T0),
        ]
        assert [s.session_id for s in order_sessions(sessions)] == ["s2", "s1"]

    def test_negative_limit_is_empty(self):
        assert order_sessions([Session("s1", 1, T0, T0)], limit=-1) == []


# ── Recent view ──


class TestRecentConversations:
    def test_messages_oldest_first(self):
        events = [
            make_event("3", "s1", T0 + timedelta(seconds=20), role="assistant", content="hello!"),
            make_event("1", "s1", T0, content="hi"),
        ]
        conv = recent_conversations(events)[0]
        assert [m.content for m in conv.messages] == ["hi", "hello!"]
        assert conv.start_time == T0
        assert conv.last_activity == T0 + timedelta(seconds=20)

    def test_sessions_most_recent_first(self):
        events = [
            make_event("1", "old", T0),
            make_event("2", "new", T0 + timedelta(hours=1)),
        ]
        assert [c.session_id for c in recent_conversations(events)] == ["new", "old"]

    def test_capped(self):
        events = [make_event(str(i), f"s{i:02d}", T0 + timedelta(minutes=i)) for i in range(30)]
        convs = recent_conversations(events)
        assert len(convs) == 20
        assert convs[0].session_id == "s29"
        assert len(recent_conversations(events, max_sessions=3)) == 3
