"""FastAPI application factory for Insight-Engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from insight_engine.common.config import get_settings
from insight_engine.common.exceptions import InsightError
from insight_engine.common.logging import setup_logging
from insight_engine.common.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

_LOCATIONS = ("body", "query", "path", "header", "cookie")


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = list(first.get("loc", ()))
    if loc and loc[0] in _LOCATIONS:
        loc = loc[1:]
    location = ".".join(str(part) for part in loc)
    if first.get("type") == "missing" and location:
        return f"Missing required field: {location}"
    if location:
        return f"Invalid value for {location}: {first.get('msg', 'invalid')}"
    return first.get("msg", "Invalid request")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from insight_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        logger.info("Insight-Engine started (%s)", settings.environment)
        yield
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InsightError)
    async def insight_error_handler(request: Request, exc: InsightError):
        return JSONResponse(ErrorResponse(error=exc.message).model_dump(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(ErrorResponse(error=_first_validation_message(exc)).model_dump(), status_code=400)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from insight_engine.auth.router import router as auth_router
    from insight_engine.sessions.router import router as sessions_router
    from insight_engine.metrics.router import router as metrics_router
    from insight_engine.ingestion.router import router as ingestion_router
    from insight_engine.licensing.router import router as licensing_router
    from insight_engine.products.router import router as products_router

    prefix = settings.api_prefix
    app.include_router(auth_router, prefix=prefix, tags=["auth"])
    app.include_router(sessions_router, prefix=prefix, tags=["sessions"])
    app.include_router(metrics_router, prefix=prefix, tags=["metrics"])
    app.include_router(ingestion_router, prefix=prefix, tags=["ingestion"])
    app.include_router(products_router, prefix=prefix, tags=["products"])
    app.include_router(licensing_router, prefix=prefix, tags=["licensing"])

    return app
