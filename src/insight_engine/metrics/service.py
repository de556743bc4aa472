"""Metrics service: dashboard statistics over scoped licenses and events."""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.config import InsightSettings
from insight_engine.common.models import as_utc
from insight_engine.events.store import USER, EventStore
from insight_engine.licensing.models import LicenseModel
from insight_engine.licensing.service import INGESTIBLE_STATUSES, LicensingService
from insight_engine.metrics.aggregator import (
    DEFAULT_PLAN_LABEL,
    DEFAULT_STATUS_LABEL,
    UNKNOWN_LABEL,
    average_duration,
    average_messages,
    daily_series,
    distribution,
    dominant_label,
    growth,
    peak_hour,
    resolve_date_range,
    revenue,
    split_trend,
)
from insight_engine.presentation.formatter import (
    format_duration,
    iso,
    plan_chart,
    product_chart,
    product_info,
    series_payload,
    status_chart,
)
from insight_engine.sessions.service import SessionService
from insight_engine.tenancy.scope import (
    Principal,
    TenancyScope,
    require_license_access,
    require_master,
    scope,
)

PERIOD = timedelta(days=30)
ACTIVE_DOMAIN_WINDOW = timedelta(days=7)
PRODUCT_CARDS = ("chatbot", "setup-agent", "sales-agent")


class MetricsService:
    """Counts, distributions, series and trends for the dashboards."""

    def __init__(
        self,
        settings: InsightSettings,
        sessions: SessionService,
        licensing: LicensingService,
        store: EventStore | None = None,
    ):
        self.settings = settings
        self.sessions = sessions
        self.licensing = licensing
        self.store = store or EventStore()

    @property
    def report_tz(self) -> tzinfo:
        return ZoneInfo(self.settings.report_timezone)

    async def _conversation_growth(
        self, session: AsyncSession, tenancy: TenancyScope, now: datetime,
    ) -> tuple[int, int, int]:
        """(recent, previous, growth) for distinct sessions, last 30 days vs the 30 before."""
        recent = await self.store.count_sessions(session, tenancy, since=now - PERIOD)
        previous = await self.store.count_sessions(
            session, tenancy, since=now - 2 * PERIOD, until=now - PERIOD,
        )
        return recent, previous, growth(previous, recent)

    # ── Overview cards ──

    async def dashboard_stats(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        tenancy = scope(principal)
        now = now or datetime.now(timezone.utc)

        if principal.is_master:
            total_licenses = await self.licensing.count_licenses(session, tenancy)
            active_licenses = await self.licensing.count_licenses(session, tenancy, ("active",))
        else:
            total_licenses = 1
            active_licenses = 1

        recent, _, monthly_growth = await self._conversation_growth(session, tenancy, now)

        result = await session.execute(
            tenancy.apply(
                select(LicenseModel.plan, LicenseModel.subscription_status),
                LicenseModel.license_key,
            )
        )
        return {
            "totalLicenses": total_licenses,
            "activeLicenses": active_licenses,
            "activeConversations": recent,
            "monthlyGrowth": monthly_growth,
            "revenue": revenue(result.all()),
        }

    # ── Downloads / activations ──

    async def downloads_activations(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        date_range: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        tenancy = scope(principal)
        start, end = resolve_date_range(date_range, now)

        query = tenancy.apply(
            select(LicenseModel.created_at, LicenseModel.used_at),
            LicenseModel.license_key,
        ).where(
            (LicenseModel.created_at >= start) | (LicenseModel.used_at >= start)
        )
        rows = (await session.execute(query)).all()

        downloads = daily_series((as_utc(r.created_at) for r in rows), start, end)
        activations = daily_series((as_utc(r.used_at) for r in rows), start, end)

        return {
            "downloads": series_payload(downloads),
            "activations": series_payload(activations),
            "totalDownloads": sum(p.count for p in downloads),
            "totalActivations": sum(p.count for p in activations),
            "downloadsTrend": split_trend(downloads),
            "activationsTrend": split_trend(activations),
        }

    # ── Distributions ──

    async def product_distribution(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
    ) -> dict[str, Any]:
        """Live (active or trial) licenses with a product type, split by product."""
        tenancy = scope(principal)
        query = tenancy.apply(select(LicenseModel.product_type), LicenseModel.license_key).where(
            LicenseModel.status.in_(INGESTIBLE_STATUSES),
            LicenseModel.product_type.is_not(None),
        )
        values = (await session.execute(query)).scalars().all()
        return {
            "distribution": [
                {"productType": b.label, "count": b.count, "percentage": b.percentage}
                for b in distribution(values)
            ],
        }

    async def analytics_distribution(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Cross-tenant product/plan/status breakdown. Master only."""
        require_master(principal)
        now = now or datetime.now(timezone.utc)
        everything = TenancyScope()

        live = (
            await session.execute(
                select(LicenseModel.license_key, LicenseModel.product_type, LicenseModel.plan)
                .where(LicenseModel.status.in_(INGESTIBLE_STATUSES))
            )
        ).all()
        statuses = (await session.execute(select(LicenseModel.status))).scalars().all()

        product_buckets = distribution((r.product_type for r in live), UNKNOWN_LABEL)
        plan_buckets = distribution((r.plan for r in live), DEFAULT_PLAN_LABEL)
        status_buckets = distribution(statuses, DEFAULT_STATUS_LABEL)
        total_licenses = len(live)

        raw_types = {(t or UNKNOWN_LABEL): t for t in {r.product_type for r in live}}
        raw_statuses = {(s or DEFAULT_STATUS_LABEL): s for s in set(statuses)}
        products = product_chart(product_buckets, raw_types)
        plans = plan_chart(plan_buckets, total_licenses)

        keys_by_type: dict[Optional[str], list[str]] = {}
        for r in live:
            keys_by_type.setdefault(r.product_type, []).append(r.license_key)

        usage = []
        for bucket in product_buckets:
            product_type = raw_types.get(bucket.label)
            keys = keys_by_type.get(product_type, [])
            usage.append({
                "productType": product_type,
                "licenses": bucket.count,
                "conversations": await self.store.count_sessions(
                    session, everything, license_keys=keys,
                ),
                "activeDomains": await self.store.count_domains(
                    session, everything, since=now - ACTIVE_DOMAIN_WINDOW, license_keys=keys,
                ),
            })

        return {
            "products": products,
            "plans": plans,
            "statuses": status_chart(status_buckets, raw_statuses),
            "usage": usage,
            "summary": {
                "totalProducts": len(products),
                "totalLicenses": total_licenses,
                "dominantProduct": dominant_label(products, "name"),
                "dominantPlan": dominant_label(plans, "name"),
            },
        }

    # ── Product cards ──

    async def products_overview(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        tenancy = scope(principal)
        now = now or datetime.now(timezone.utc)

        result = await session.execute(
            tenancy.apply(
                select(LicenseModel.product_type, func.count(LicenseModel.id).label("licenses")),
                LicenseModel.license_key,
            ).group_by(LicenseModel.product_type)
        )
        licenses_by_type = {row.product_type: row.licenses for row in result}
        total_sessions = await self.store.count_sessions(session, tenancy)
        _, _, chatbot_growth = await self._conversation_growth(session, tenancy, now)

        products = []
        for product_type in PRODUCT_CARDS:
            count = licenses_by_type.get(product_type, 0)
            is_chatbot = product_type == "chatbot"
            if count == 0 and not (is_chatbot and principal.is_master):
                continue
            info = product_info(product_type)
            products.append({
                "id": product_type,
                "name": info["name"],
                "description": info["description"],
                "licenses": count,
                # Only the chatbot reports events today
                "activeUsers": total_sessions if is_chatbot else 0,
                "growth": chatbot_growth if is_chatbot else 0,
                "stats": {"totalConversations": total_sessions if is_chatbot else 0},
            })
        return {"products": products}

    # ── Per-license ──

    async def license_stats(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        license_key: str,
    ) -> dict[str, Any]:
        require_license_access(principal, license_key)
        pinned = TenancyScope(license_key=license_key)

        total_conversations = await self.store.count_messages(session, pinned, role=USER)
        sessions = await self.sessions.grouped_sessions(session, pinned)
        last_activity = await self.store.last_activity(session, pinned)
        timestamps = await self.store.fetch_timestamps(session, pinned)

        return {
            "totalConversations": total_conversations,
            "totalSessions": len(sessions),
            "avgSessionDuration": format_duration(average_duration(sessions)),
            "avgMessagesPerSession": average_messages(sessions),
            "lastActivity": iso(last_activity),
            "peakUsageHour": peak_hour(timestamps, self.report_tz),
        }
