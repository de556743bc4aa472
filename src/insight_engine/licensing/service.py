"""Licensing service: license records and their activation timestamps."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.config import InsightSettings
from insight_engine.licensing.models import LicenseModel
from insight_engine.tenancy.scope import TenancyScope

logger = logging.getLogger(__name__)

INGESTIBLE_STATUSES = ("active", "trial")


class LicensingService:
    """License lookups, scoped listings and liveness updates."""

    def __init__(self, settings: InsightSettings):
        self.settings = settings

    async def create_license(
        self,
        session: AsyncSession,
        license_key: str,
        status: str = "active",
        product_type: str | None = None,
        **kwargs: Any,
    ) -> LicenseModel:
        license_obj = LicenseModel(
            license_key=license_key,
            status=status,
            product_type=product_type,
            plan=kwargs.get("plan"),
            domain=kwargs.get("domain"),
            site_key=kwargs.get("site_key"),
            customer_name=kwargs.get("customer_name"),
            email=kwargs.get("email"),
            subscription_status=kwargs.get("subscription_status"),
            used_at=kwargs.get("used_at"),
        )
        if kwargs.get("created_at") is not None:
            license_obj.created_at = kwargs["created_at"]
        session.add(license_obj)
        await session.flush()
        return license_obj

    async def get_license_by_key(
        self, session: AsyncSession, license_key: str,
    ) -> LicenseModel | None:
        result = await session.execute(
            select(LicenseModel).where(LicenseModel.license_key == license_key)
        )
        return result.scalar_one_or_none()

    async def list_licenses(
        self,
        session: AsyncSession,
        tenancy: TenancyScope,
        status: str | None = None,
        product_type: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[LicenseModel], int]:
        query = tenancy.apply(select(LicenseModel), LicenseModel.license_key)
        count_query = tenancy.apply(select(func.count(LicenseModel.id)), LicenseModel.license_key)
        if status:
            query = query.where(LicenseModel.status == status)
            count_query = count_query.where(LicenseModel.status == status)
        if product_type:
            query = query.where(LicenseModel.product_type == product_type)
            count_query = count_query.where(LicenseModel.product_type == product_type)

        total = (await session.execute(count_query)).scalar() or 0
        result = await session.execute(
            query.order_by(LicenseModel.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def count_licenses(
        self,
        session: AsyncSession,
        tenancy: TenancyScope,
        statuses: tuple[str, ...] | None = None,
    ) -> int:
        query = tenancy.apply(select(func.count(LicenseModel.id)), LicenseModel.license_key)
        if statuses:
            query = query.where(LicenseModel.status.in_(statuses))
        return (await session.execute(query)).scalar() or 0

    async def mark_used(
        self,
        session: AsyncSession,
        license_obj: LicenseModel,
        now: Optional[datetime] = None,
    ) -> LicenseModel:
        """Record tenant liveness: stamp ``used_at``."""
        license_obj.used_at = now or datetime.now(timezone.utc)
        await session.flush()
        logger.info("License %s marked active at %s", license_obj.license_key, license_obj.used_at)
        return license_obj
