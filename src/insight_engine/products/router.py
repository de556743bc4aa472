"""Custom product registry API router."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from insight_engine.auth.dependencies import require_principal
from insight_engine.common.exceptions import ConflictError, StoreFailureError
from insight_engine.products.schemas import CustomProductCreate, CustomProductResponse
from insight_engine.tenancy.scope import Principal

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_service():
    from insight_engine.deps import get_product_service
    return get_product_service()


def _get_db():
    from insight_engine.deps import get_db
    return get_db()


@router.post("/licenses/custom-product", response_model=CustomProductResponse, status_code=201)
async def register_custom_product(
    body: CustomProductCreate,
    principal: Principal = Depends(require_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            product = await svc.register(
                session, principal,
                license_key=body.licenseKey,
                product_type=body.productType,
                customer_email=body.customerEmail,
                table_name=body.tableName,
                name=body.name,
            )
            return CustomProductResponse(
                productType=product.product_type,
                name=product.name,
                tableName=product.source_table,
            )
    except IntegrityError:
        raise ConflictError("License key already exists")
    except SQLAlchemyError:
        logger.exception("Custom product registration failed")
        raise StoreFailureError("Failed to create custom product")


@router.get("/custom-product/{product_type}")
async def custom_product_report(
    product_type: str,
    principal: Principal = Depends(require_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            return await svc.product_report(session, principal, product_type)
    except SQLAlchemyError:
        logger.exception("Custom product query failed for %s", product_type)
        raise StoreFailureError("Failed to fetch product data")
