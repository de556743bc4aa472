"""Licensing API router."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from insight_engine.auth.dependencies import require_principal
from insight_engine.common.exceptions import ConflictError, StoreFailureError
from insight_engine.licensing.schemas import LicenseCreate, LicenseList, LicenseResponse
from insight_engine.tenancy.scope import Principal, require_master, scope

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_service():
    from insight_engine.deps import get_licensing_service
    return get_licensing_service()


def _get_db():
    from insight_engine.deps import get_db
    return get_db()


@router.post("/licenses", response_model=LicenseResponse, status_code=201)
async def create_license(
    body: LicenseCreate,
    principal: Principal = Depends(require_principal),
):
    require_master(principal)
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            license_obj = await svc.create_license(
                session,
                body.licenseKey,
                status=body.status,
                product_type=body.productType,
                plan=body.plan,
                domain=body.domain,
                site_key=body.siteKey,
                customer_name=body.customerName,
                email=body.email,
                subscription_status=body.subscriptionStatus,
            )
            return LicenseResponse.from_model(license_obj)
    except IntegrityError:
        raise ConflictError("License key already exists")
    except SQLAlchemyError:
        logger.exception("License creation failed")
        raise StoreFailureError("Failed to create license")


@router.get("/licenses", response_model=LicenseList)
async def list_licenses(
    status: str | None = Query(None),
    product_type: str | None = Query(None, alias="productType"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(require_principal),
):
    tenancy = scope(principal)
    svc = _get_service()
    db = _get_db()
    offset = (page - 1) * page_size
    try:
        async with db.get_session() as session:
            items, total = await svc.list_licenses(
                session, tenancy,
                status=status, product_type=product_type,
                offset=offset, limit=page_size,
            )
            return LicenseList(
                items=[LicenseResponse.from_model(lic) for lic in items],
                total=total,
            )
    except SQLAlchemyError:
        logger.exception("License listing failed")
        raise StoreFailureError("Failed to fetch licenses")
