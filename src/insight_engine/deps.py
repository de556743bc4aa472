"""Dependency injection singletons for Insight-Engine."""

from insight_engine.auth.service import AuthService
from insight_engine.common.config import get_settings
from insight_engine.common.database import DatabaseManager
from insight_engine.ingestion.service import IngestionService
from insight_engine.licensing.service import LicensingService
from insight_engine.metrics.service import MetricsService
from insight_engine.products.service import ProductService
from insight_engine.sessions.service import SessionService

_db: DatabaseManager | None = None
_licensing: LicensingService | None = None
_sessions: SessionService | None = None
_metrics: MetricsService | None = None
_ingestion: IngestionService | None = None
_products: ProductService | None = None
_auth: AuthService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_licensing_service() -> LicensingService:
    global _licensing
    if _licensing is None:
        _licensing = LicensingService(get_settings())
    return _licensing


def get_session_service() -> SessionService:
    global _sessions
    if _sessions is None:
        _sessions = SessionService(get_settings())
    return _sessions


def get_metrics_service() -> MetricsService:
    global _metrics
    if _metrics is None:
        _metrics = MetricsService(
            get_settings(), get_session_service(), get_licensing_service(),
        )
    return _metrics


def get_ingestion_service() -> IngestionService:
    global _ingestion
    if _ingestion is None:
        _ingestion = IngestionService(
            get_settings(), get_licensing_service(), get_session_service(),
        )
    return _ingestion


def get_product_service() -> ProductService:
    global _products
    if _products is None:
        _products = ProductService(get_licensing_service())
    return _products


def get_auth_service() -> AuthService:
    global _auth
    if _auth is None:
        _auth = AuthService(get_settings(), get_licensing_service())
    return _auth


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _licensing, _sessions, _metrics, _ingestion, _products, _auth
    _db = None
    _licensing = None
    _sessions = None
    _metrics = None
    _ingestion = None
    _products = None
    _auth = None
