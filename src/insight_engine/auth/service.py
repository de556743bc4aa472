"""Dashboard login: master-key bypass or license + domain check."""

import hmac
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from insight_engine.common.config import InsightSettings
from insight_engine.common.exceptions import AuthenticationMissingError
from insight_engine.events.store import EventStore
from insight_engine.licensing.service import LicensingService
from insight_engine.tenancy.scope import Principal

logger = logging.getLogger(__name__)

MASTER_DOMAIN = "ALL_DOMAINS"


class AuthService:
    """Turns dashboard credentials into a principal."""

    def __init__(
        self,
        settings: InsightSettings,
        licensing: LicensingService,
        store: EventStore | None = None,
    ):
        self.settings = settings
        self.licensing = licensing
        self.store = store or EventStore()

    def is_master_key(self, license_key: str) -> bool:
        return hmac.compare_digest(
            license_key.encode(), self.settings.master_license_key.encode()
        )

    async def authenticate(
        self,
        session: AsyncSession,
        license_key: str,
        domain: str | None = None,
    ) -> Principal:
        if self.is_master_key(license_key):
            return Principal(license_key=license_key, is_master=True, domain=MASTER_DOMAIN)

        license_obj = await self.licensing.get_license_by_key(session, license_key)
        if license_obj is None or license_obj.status != "active":
            raise AuthenticationMissingError("Invalid license key")

        if not domain:
            raise AuthenticationMissingError("Domain not found for this license")
        domain_ok = (
            (license_obj.domain or "").lower() == domain.lower()
            or await self.store.has_domain(session, license_key, domain)
        )
        if not domain_ok:
            logger.warning("Dashboard login for %s with unknown domain %s", license_key, domain)
            raise AuthenticationMissingError("Domain not found for this license")

        return Principal(
            license_key=license_key,
            is_master=False,
            domain=domain,
            customer_name=license_obj.customer_name,
            email=license_obj.email,
        )
