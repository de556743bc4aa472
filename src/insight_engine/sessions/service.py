"""Session service: role-scoped session views over the event log."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.config import InsightSettings
from insight_engine.common.exceptions import ValidationFailedError
from insight_engine.common.models import as_utc
from insight_engine.events.models import EventLogModel
from insight_engine.events.store import EventStore
from insight_engine.licensing.models import LicenseModel
from insight_engine.presentation.formatter import (
    conversation_payload,
    iso,
    session_payload,
)
from insight_engine.sessions.reconstructor import (
    GROUP_BY_SESSION,
    GROUP_BY_SESSION_DOMAIN,
    GROUP_BY_SESSION_DOMAIN_LICENSE,
    Session,
    order_sessions,
    recent_conversations,
    reconstruct,
)
from insight_engine.tenancy.scope import Principal, TenancyScope, scope

VIEWS = ("all", "by-domain", "recent")
ACTIVE_WINDOW = timedelta(hours=24)


class SessionService:
    """Reconstructs sessions for dashboards and ingestion summaries."""

    def __init__(self, settings: InsightSettings, store: EventStore | None = None):
        self.settings = settings
        self.store = store or EventStore()

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None or limit <= 0:
            return self.settings.default_limit
        return min(limit, self.settings.max_limit)

    # ── Aggregate grouping in the store ──

    async def grouped_sessions(
        self,
        session: AsyncSession,
        tenancy: TenancyScope,
        group_keys: Sequence[str] = GROUP_BY_SESSION,
        domain: Optional[str] = None,
        license_key: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Session]:
        """GROUP BY the key tuple and let the store compute count/min/max."""
        columns = [getattr(EventLogModel, k) for k in group_keys]
        last_seen = func.max(EventLogModel.timestamp)
        query = select(
            *columns,
            func.count(EventLogModel.id).label("message_count"),
            func.min(EventLogModel.timestamp).label("start_time"),
            last_seen.label("end_time"),
        )
        query = tenancy.apply(query, EventLogModel.license_key)
        query = query.where(EventLogModel.session_id.is_not(None))
        if domain:
            query = query.where(EventLogModel.domain == domain)
        if license_key is not None:
            query = query.where(EventLogModel.license_key == license_key)
        query = query.group_by(*columns).order_by(last_seen.desc(), *columns)
        if limit is not None:
            query = query.limit(limit)

        result = await session.execute(query)
        sessions = []
        for row in result:
            mapping = row._mapping
            sessions.append(Session(
                session_id=mapping["session_id"],
                message_count=mapping["message_count"],
                start_time=as_utc(mapping["start_time"]),
                end_time=as_utc(mapping["end_time"]),
                domain=mapping.get("domain"),
                license_key=mapping.get("license_key"),
            ))
        # Re-sort in Python so tie-breaking is identical on every backend
        return order_sessions(sessions)

    async def session_summary(
        self,
        session: AsyncSession,
        session_id: str,
        license_key: Optional[str] = None,
    ) -> Optional[Session]:
        """Reconstruct one session, optionally pinned to a license."""
        tenancy = TenancyScope(license_key=license_key)
        events = await self.store.fetch_events(session, tenancy, session_id=session_id)
        sessions = reconstruct(events, GROUP_BY_SESSION)
        return sessions[0] if sessions else None

    # ── Dashboard views ──

    async def list_sessions(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        view: str = "all",
        domain: Optional[str] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        tenancy = scope(principal)
        if view not in VIEWS:
            raise ValidationFailedError(f"Invalid view: {view}. Valid views: {', '.join(VIEWS)}")
        limit = self.clamp_limit(limit)

        if view == "by-domain":
            sessions = await self.grouped_sessions(
                session, tenancy, GROUP_BY_SESSION_DOMAIN, domain=domain, limit=limit,
            )
            return {"sessions": [session_payload(s, "Unknown") for s in sessions]}

        if view == "recent":
            events = await self.store.fetch_events(
                session, tenancy, domain=domain, limit=limit,
            )
            return {"sessions": [conversation_payload(c) for c in recent_conversations(events)]}

        return await self._all_sessions(session, principal, tenancy, domain, limit, now)

    async def _all_sessions(
        self,
        session: AsyncSession,
        principal: Principal,
        tenancy: TenancyScope,
        domain: Optional[str],
        limit: int,
        now: Optional[datetime],
    ) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        since = now - ACTIVE_WINDOW

        domain_query = tenancy.apply(
            select(
                EventLogModel.domain,
                func.count(func.distinct(EventLogModel.session_id)).label("session_count"),
                func.count(EventLogModel.id).label("message_count"),
            ),
            EventLogModel.license_key,
        ).where(
            EventLogModel.session_id.is_not(None),
            EventLogModel.timestamp >= since,
        )
        if domain:
            domain_query = domain_query.where(EventLogModel.domain == domain)
        domain_query = domain_query.group_by(EventLogModel.domain).order_by(EventLogModel.domain)
        domain_rows = (await session.execute(domain_query)).all()

        total_query = tenancy.apply(
            select(func.count(func.distinct(EventLogModel.session_id))),
            EventLogModel.license_key,
        ).where(EventLogModel.session_id.is_not(None))
        if domain:
            total_query = total_query.where(EventLogModel.domain == domain)
        total_sessions = (await session.execute(total_query)).scalar() or 0

        sessions = await self.grouped_sessions(
            session, tenancy, GROUP_BY_SESSION_DOMAIN_LICENSE, domain=domain, limit=limit,
        )

        license_keys = {s.license_key for s in sessions if s.license_key}
        license_domains: dict[str, Optional[str]] = {}
        if license_keys:
            result = await session.execute(
                select(LicenseModel.license_key, LicenseModel.domain)
                .where(LicenseModel.license_key.in_(license_keys))
            )
            license_domains = {key: dom for key, dom in result.all()}

        formatted = []
        for s in sessions:
            fallback = license_domains.get(s.license_key or "") or "Not configured"
            formatted.append(session_payload(s, fallback, include_license=principal.is_master))

        return {
            "summary": {
                "totalSessions": total_sessions,
                "activeDomains": len(domain_rows),
                "totalMessages": sum(row.message_count for row in domain_rows),
            },
            "sessions": formatted,
            "domains": [
                {
                    "domain": row.domain or "Unknown",
                    "sessionCount": row.session_count,
                    "messageCount": row.message_count,
                }
                for row in domain_rows
            ],
        }

    async def conversation_messages(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        conversation_id: str,
    ) -> dict[str, Any]:
        """All turns of one conversation, oldest first."""
        tenancy = scope(principal)
        events = await self.store.fetch_events(
            session, tenancy,
            conversation_id=conversation_id,
            limit=self.settings.max_limit,
            newest_first=False,
            require_session=False,
        )
        return {
            "messages": [
                {
                    "id": e.id,
                    "role": e.role,
                    "content": e.content,
                    "timestamp": iso(e.timestamp),
                    "intentDetected": e.intent_detected,
                }
                for e in events
            ],
        }
