"""Dashboard metrics API router."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from insight_engine.auth.dependencies import require_principal
from insight_engine.common.exceptions import StoreFailureError
from insight_engine.metrics.schemas import DateRangeRequest
from insight_engine.tenancy.scope import Principal

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_service():
    from insight_engine.deps import get_metrics_service
    return get_metrics_service()


def _get_db():
    from insight_engine.deps import get_db
    return get_db()


@router.get("/dashboard/stats")
async def dashboard_stats(principal: Principal = Depends(require_principal)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.dashboard_stats(session, principal)
    except SQLAlchemyError:
        logger.exception("Stats query failed")
        raise StoreFailureError("Failed to fetch stats")


async def _downloads_activations(principal: Principal, date_range: str | None):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.downloads_activations(session, principal, date_range)
    except SQLAlchemyError:
        logger.exception("Downloads/activations query failed")
        raise StoreFailureError("Failed to fetch downloads/activations data")


@router.post("/dashboard/downloads-activations")
async def downloads_activations(
    body: DateRangeRequest | None = None,
    principal: Principal = Depends(require_principal),
):
    return await _downloads_activations(principal, body.dateRange if body else None)


@router.get("/dashboard/downloads-activations")
async def downloads_activations_query(
    dateRange: str = Query("30d"),
    principal: Principal = Depends(require_principal),
):
    return await _downloads_activations(principal, dateRange)


@router.get("/dashboard/product-distribution")
async def product_distribution(principal: Principal = Depends(require_principal)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.product_distribution(session, principal)
    except SQLAlchemyError:
        logger.exception("Product distribution query failed")
        raise StoreFailureError("Failed to fetch product distribution")


@router.get("/analytics/distribution")
async def analytics_distribution(principal: Principal = Depends(require_principal)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.analytics_distribution(session, principal)
    except SQLAlchemyError:
        logger.exception("Analytics distribution query failed")
        raise StoreFailureError("Failed to fetch distribution data")


@router.get("/dashboard/products")
async def products_overview(principal: Principal = Depends(require_principal)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.products_overview(session, principal)
    except SQLAlchemyError:
        logger.exception("Products query failed")
        raise StoreFailureError("Failed to fetch products data")


@router.get("/dashboard/licenses/{license_key}/stats")
async def license_stats(
    license_key: str,
    principal: Principal = Depends(require_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.license_stats(session, principal, license_key)
    except SQLAlchemyError:
        logger.exception("License stats query failed")
        raise StoreFailureError("Failed to fetch licence statistics")
