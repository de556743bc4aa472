"""Shared test fixtures for Insight-Engine."""

import os
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient


MASTER_KEY = "test-master-license-key"
SECRET_KEY = "test-secret-key-for-dashboard-cookies"
JWT_SECRET = "test-jwt-secret-for-dashboard-tokens"


@pytest.fixture
def master_key():
    return MASTER_KEY


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["INSIGHT_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["INSIGHT_SECRET_KEY"] = SECRET_KEY
    os.environ["INSIGHT_JWT_SECRET"] = JWT_SECRET
    os.environ["INSIGHT_MASTER_LICENSE_KEY"] = MASTER_KEY
    os.environ["INSIGHT_API_PREFIX"] = "/api"

    # Clear caches and singletons so new env vars take effect
    from insight_engine.common.config import get_settings
    get_settings.cache_clear()

    from insight_engine.deps import reset_singletons
    reset_singletons()

    from insight_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from insight_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def auth_headers(app):
    """Build bearer headers for any principal."""
    from insight_engine.auth.tokens import create_access_token
    from insight_engine.tenancy.scope import Principal

    def _headers(license_key: str, is_master: bool = False, domain: str | None = None):
        principal = Principal(license_key=license_key, is_master=is_master, domain=domain)
        return {"Authorization": f"Bearer {create_access_token(principal)}"}

    return _headers


@pytest.fixture
def master_headers(auth_headers):
    return auth_headers(MASTER_KEY, is_master=True, domain="ALL_DOMAINS")


class Seeder:
    """Writes licenses and raw event rows straight to the test database."""

    def __init__(self, db):
        self.db = db

    async def license(self, license_key: str, **kwargs):
        from insight_engine.licensing.service import LicensingService
        from insight_engine.common.config import get_settings

        svc = LicensingService(get_settings())
        async with self.db.get_session() as session:
            return await svc.create_license(session, license_key, **kwargs)

    async def event(
        self,
        session_id: str | None,
        license_key: str | None,
        timestamp: datetime,
        role: str = "user",
        content: str = "hello",
        domain: str | None = "shop.example.com",
        **kwargs,
    ):
        from insight_engine.events.models import EventLogModel

        row = EventLogModel(
            session_id=session_id,
            license_key=license_key,
            timestamp=timestamp,
            role=role,
            content=content,
            domain=domain,
            conversation_id=kwargs.pop("conversation_id", session_id),
            **kwargs,
        )
        async with self.db.get_session() as session:
            session.add(row)
        return row


@pytest.fixture
async def seed(client):
    from insight_engine.deps import get_db
    return Seeder(get_db())


@pytest.fixture
def now():
    return datetime.now(timezone.utc).replace(microsecond=0) - timedelta(minutes=1)
