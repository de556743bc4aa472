"""Session reconstruction from raw conversation events.

A session is every event sharing a group key (``session_id``, optionally
narrowed by ``domain`` and ``license_key``). Sessions are derived on every
read and never persisted.

Durations are only trusted inside the open interval (0, 86400) seconds. A
zero span (single event, identical timestamps) or anything at or beyond a day
is reported as 0 and rendered "N/A", but the session itself is kept.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from insight_engine.events.store import EventRecord

MAX_SESSION_SECONDS = 86400
RECENT_SESSION_CAP = 20

GROUP_BY_SESSION = ("session_id",)
GROUP_BY_SESSION_DOMAIN = ("session_id", "domain")
GROUP_BY_SESSION_DOMAIN_LICENSE = ("session_id", "domain", "license_key")

_VALID_GROUP_KEYS = {GROUP_BY_SESSION, GROUP_BY_SESSION_DOMAIN, GROUP_BY_SESSION_DOMAIN_LICENSE}


def session_duration(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole seconds between start and end, or 0 when the span is not trustworthy."""
    if start is None or end is None:
        return 0
    seconds = (end - start).total_seconds()
    if seconds <= 0 or seconds >= MAX_SESSION_SECONDS:
        return 0
    rounded = math.floor(seconds + 0.5)
    return rounded if rounded < MAX_SESSION_SECONDS else 0


@dataclass
class Session:
    """Aggregate view of one reconstructed session."""
    session_id: str
    message_count: int
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    domain: Optional[str] = None
    license_key: Optional[str] = None

    @property
    def duration(self) -> int:
        return session_duration(self.start_time, self.end_time)

    @property
    def span_seconds(self) -> float:
        """Unrounded seconds between first and last event."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def has_valid_duration(self) -> bool:
        return self.duration > 0

    @property
    def last_activity(self) -> Optional[datetime]:
        return self.end_time


@dataclass
class Message:
    id: str
    role: str
    content: Optional[str]
    timestamp: Optional[datetime]
    intent_detected: Optional[str] = None


@dataclass
class Conversation:
    """A session with its messages materialized, for the "recent" view."""
    session_id: str
    domain: Optional[str]
    conversation_id: Optional[str]
    user_id: Optional[str]
    start_time: Optional[datetime]
    last_activity: Optional[datetime]
    messages: list[Message] = field(default_factory=list)


def _sort_key(value: Any) -> tuple:
    # None sorts before any string inside a group key
    return (value is not None, value or "")


def _recency_key(end_time: Optional[datetime]) -> float:
    return end_time.timestamp() if end_time is not None else float("-inf")


def order_sessions(sessions: Iterable[Session], limit: Optional[int] = None) -> list[Session]:
    """Most recently active first; ties resolved by group key."""
    ordered = sorted(
        sessions,
        key=lambda s: tuple(_sort_key(v) for v in (s.session_id, s.domain, s.license_key)),
    )
    ordered.sort(key=lambda s: _recency_key(s.end_time), reverse=True)
    if limit is not None:
        ordered = ordered[:max(limit, 0)]
    return ordered


def reconstruct(
    events: Iterable[EventRecord],
    group_keys: Sequence[str] = GROUP_BY_SESSION,
    limit: Optional[int] = None,
) -> list[Session]:
    """Group events into sessions ordered by last activity, newest first."""
    group_keys = tuple(group_keys)
    if group_keys not in _VALID_GROUP_KEYS:
        raise ValueError(f"Unsupported session grouping: {group_keys}")

    groups: dict[tuple, Session] = {}
    for event in events:
        if event.session_id is None:
            continue
        key = tuple(getattr(event, k) for k in group_keys)
        ts = event.timestamp
        current = groups.get(key)
        if current is None:
            groups[key] = Session(
                session_id=event.session_id,
                message_count=1,
                start_time=ts,
                end_time=ts,
                domain=event.domain if "domain" in group_keys else None,
                license_key=event.license_key if "license_key" in group_keys else None,
            )
            continue
        current.message_count += 1
        if ts is not None:
            if current.start_time is None or ts < current.start_time:
                current.start_time = ts
            if current.end_time is None or ts > current.end_time:
                current.end_time = ts

    return order_sessions(groups.values(), limit=limit)


def recent_conversations(
    events: Iterable[EventRecord],
    max_sessions: int = RECENT_SESSION_CAP,
) -> list[Conversation]:
    """Materialize per-session message lists from a window of recent events.

    Session attributes (domain, conversation, user) come from the newest event
    seen when ``events`` arrive newest first, as the store returns them.
    """
    by_session: dict[str, Conversation] = {}
    for event in events:
        if event.session_id is None:
            continue
        conv = by_session.get(event.session_id)
        if conv is None:
            conv = Conversation(
                session_id=event.session_id,
                domain=event.domain,
                conversation_id=event.conversation_id,
                user_id=event.user_id,
                start_time=event.timestamp,
                last_activity=event.timestamp,
            )
            by_session[event.session_id] = conv
        conv.messages.append(Message(
            id=event.id,
            role=event.role,
            content=event.content,
            timestamp=event.timestamp,
            intent_detected=event.intent_detected,
        ))
        ts = event.timestamp
        if ts is not None:
            if conv.last_activity is None or ts > conv.last_activity:
                conv.last_activity = ts
            if conv.start_time is None or ts < conv.start_time:
                conv.start_time = ts

    for conv in by_session.values():
        conv.messages.sort(key=lambda m: _recency_key(m.timestamp))

    ordered = sorted(by_session.values(), key=lambda c: c.session_id)
    ordered.sort(key=lambda c: _recency_key(c.last_activity), reverse=True)
    return ordered[:max_sessions]
