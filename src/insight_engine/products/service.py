"""Custom product registry: persisted product type to source-table mapping."""

import re
from typing import Any, Optional

from sqlalchemy import column, func, literal_column, select, table
from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.exceptions import ReferenceNotFoundError, ValidationFailedError
from insight_engine.common.models import as_utc
from insight_engine.licensing.service import LicensingService
from insight_engine.presentation.formatter import iso
from insight_engine.products.models import CustomProductModel
from insight_engine.tenancy.scope import Principal, TenancyScope, require_master, scope

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
DATA_LIMIT = 100


def validate_table_name(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ValidationFailedError(f"Invalid table name: {name!r}")
    return name


def _jsonable(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class ProductService:
    """Register custom products and report on their source tables."""

    def __init__(self, licensing: LicensingService):
        self.licensing = licensing

    async def get_product(
        self, session: AsyncSession, product_type: str,
    ) -> CustomProductModel | None:
        result = await session.execute(
            select(CustomProductModel).where(CustomProductModel.product_type == product_type)
        )
        return result.scalar_one_or_none()

    async def register(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        license_key: str,
        product_type: str,
        customer_email: str,
        table_name: str,
        name: Optional[str] = None,
    ) -> CustomProductModel:
        """Upsert the product config row and create an active license for it."""
        require_master(principal)
        validate_table_name(table_name)

        product = await self.get_product(session, product_type)
        if product is None:
            product = CustomProductModel(
                product_type=product_type,
                name=name or product_type,
                source_table=table_name,
            )
            session.add(product)
        else:
            product.source_table = table_name
            if name:
                product.name = name

        await self.licensing.create_license(
            session, license_key,
            status="active",
            product_type=product_type,
            email=customer_email,
        )
        await session.flush()
        return product

    async def product_report(
        self,
        session: AsyncSession,
        principal: Optional[Principal],
        product_type: str,
    ) -> dict[str, Any]:
        """Stats plus the latest rows of a product's source table, tenancy-scoped."""
        tenancy: TenancyScope = scope(principal)
        product = await self.get_product(session, product_type)
        if product is None:
            raise ReferenceNotFoundError("Product not found")

        source = table(
            validate_table_name(product.source_table),
            column("license_key"),
            column("user_id"),
            column("created_at"),
        )

        data_query = tenancy.apply(
            select(literal_column("*")).select_from(source), source.c.license_key,
        )
        data_query = data_query.order_by(source.c.created_at.desc()).limit(DATA_LIMIT)
        rows = (await session.execute(data_query)).mappings().all()

        stats_query = tenancy.apply(
            select(
                func.count().label("total_entries"),
                func.count(func.distinct(source.c.user_id)).label("unique_users"),
                func.max(source.c.created_at).label("last_activity"),
            ),
            source.c.license_key,
        )
        stats = (await session.execute(stats_query)).one()

        last_activity = stats.last_activity
        if hasattr(last_activity, "isoformat"):
            last_activity = iso(as_utc(last_activity))

        return {
            "productName": product.name,
            "stats": {
                "total_entries": stats.total_entries,
                "unique_users": stats.unique_users,
                "last_activity": last_activity,
            },
            "data": [{k: _jsonable(v) for k, v in row.items()} for row in rows],
        }
