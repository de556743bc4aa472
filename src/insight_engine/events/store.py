"""Event store adapter: scoped reads over the event log, one canonical row shape."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.models import as_utc
from insight_engine.events.models import EventLogModel
from insight_engine.tenancy.scope import TenancyScope

USER = "user"
ASSISTANT = "assistant"


def resolve_role(role: Optional[str], customer_message: Optional[str]) -> str:
    """Explicit role wins; otherwise a customer message means the user spoke."""
    if role:
        return role
    return USER if customer_message else ASSISTANT


def resolve_content(
    content: Optional[str],
    customer_message: Optional[str],
    chatbot_response: Optional[str],
) -> Optional[str]:
    return content or customer_message or chatbot_response or None


@dataclass(frozen=True)
class EventRecord:
    """Canonical event: legacy message columns already folded into role/content."""
    id: str
    session_id: Optional[str]
    license_key: Optional[str]
    domain: Optional[str]
    user_id: Optional[str]
    conversation_id: Optional[str]
    role: str
    content: Optional[str]
    intent_detected: Optional[str]
    timestamp: Optional[datetime]


def to_record(row: EventLogModel) -> EventRecord:
    return EventRecord(
        id=row.id,
        session_id=row.session_id,
        license_key=row.license_key,
        domain=row.domain,
        user_id=row.user_id,
        conversation_id=row.conversation_id,
        role=resolve_role(row.role, row.customer_message),
        content=resolve_content(row.content, row.customer_message, row.chatbot_response),
        intent_detected=row.intent_detected,
        timestamp=as_utc(row.timestamp),
    )


class EventStore:
    """Read access to ``event_logs``; every query goes through a tenancy scope."""

    def _base(
        self,
        scope: TenancyScope,
        session_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        domain: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        require_session: bool = True,
    ):
        query = scope.apply(select(EventLogModel), EventLogModel.license_key)
        if require_session:
            query = query.where(EventLogModel.session_id.is_not(None))
        if session_id is not None:
            query = query.where(EventLogModel.session_id == session_id)
        if conversation_id is not None:
            query = query.where(EventLogModel.conversation_id == conversation_id)
        if domain:
            query = query.where(EventLogModel.domain == domain)
        if since is not None:
            query = query.where(EventLogModel.timestamp >= since)
        if until is not None:
            query = query.where(EventLogModel.timestamp < until)
        return query

    async def fetch_events(
        self,
        session: AsyncSession,
        scope: TenancyScope,
        session_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        domain: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        newest_first: bool = True,
        require_session: bool = True,
    ) -> list[EventRecord]:
        query = self._base(
            scope, session_id=session_id, conversation_id=conversation_id,
            domain=domain, since=since, until=until,
            require_session=require_session,
        )
        order = EventLogModel.timestamp.desc() if newest_first else EventLogModel.timestamp.asc()
        query = query.order_by(order, EventLogModel.id)
        if limit is not None:
            query = query.limit(limit)
        result = await session.execute(query)
        return [to_record(row) for row in result.scalars().all()]

    async def fetch_timestamps(
        self,
        session: AsyncSession,
        scope: TenancyScope,
        license_key: Optional[str] = None,
    ) -> list[datetime]:
        """Timestamps of every scoped event, for hour-of-day bucketing."""
        query = scope.apply(select(EventLogModel.timestamp), EventLogModel.license_key)
        if license_key is not None:
            query = query.where(EventLogModel.license_key == license_key)
        result = await session.execute(query)
        return [as_utc(ts) for (ts,) in result.all() if ts is not None]

    async def count_sessions(
        self,
        session: AsyncSession,
        scope: TenancyScope,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        license_keys: Optional[list[str]] = None,
    ) -> int:
        """Number of distinct non-null session ids in the window."""
        query = scope.apply(
            select(func.count(func.distinct(EventLogModel.session_id))),
            EventLogModel.license_key,
        ).where(EventLogModel.session_id.is_not(None))
        if since is not None:
            query = query.where(EventLogModel.timestamp >= since)
        if until is not None:
            query = query.where(EventLogModel.timestamp < until)
        if license_keys is not None:
            query = query.where(EventLogModel.license_key.in_(license_keys))
        result = await session.execute(query)
        return result.scalar() or 0

    async def count_domains(
        self,
        session: AsyncSession,
        scope: TenancyScope,
        since: Optional[datetime] = None,
        license_keys: Optional[list[str]] = None,
    ) -> int:
        """Number of distinct non-null domains seen in the window."""
        query = scope.apply(
            select(func.count(func.distinct(EventLogModel.domain))),
            EventLogModel.license_key,
        ).where(EventLogModel.domain.is_not(None))
        if since is not None:
            query = query.where(EventLogModel.timestamp >= since)
        if license_keys is not None:
            query = query.where(EventLogModel.license_key.in_(license_keys))
        result = await session.execute(query)
        return result.scalar() or 0

    async def count_messages(
        self,
        session: AsyncSession,
        scope: TenancyScope,
        license_key: Optional[str] = None,
        role: Optional[str] = None,
    ) -> int:
        query = scope.apply(select(func.count(EventLogModel.id)), EventLogModel.license_key)
        if license_key is not None:
            query = query.where(EventLogModel.license_key == license_key)
        if role is not None:
            query = query.where(EventLogModel.role == role)
        result = await session.execute(query)
        return result.scalar() or 0

    async def last_activity(
        self,
        session: AsyncSession,
        scope: TenancyScope,
        license_key: Optional[str] = None,
    ) -> Optional[datetime]:
        query = scope.apply(select(func.max(EventLogModel.timestamp)), EventLogModel.license_key)
        if license_key is not None:
            query = query.where(EventLogModel.license_key == license_key)
        result = await session.execute(query)
        return as_utc(result.scalar())

    async def has_domain(
        self, session: AsyncSession, license_key: str, domain: str,
    ) -> bool:
        """Case-insensitive check that a license has logged events for a domain."""
        result = await session.execute(
            select(EventLogModel.id)
            .where(
                EventLogModel.license_key == license_key,
                func.lower(EventLogModel.domain) == domain.lower(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
