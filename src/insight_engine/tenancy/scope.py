"""Tenancy scoping: which rows a principal may aggregate over."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select
from sqlalchemy.orm import InstrumentedAttribute

from insight_engine.common.exceptions import (
    AuthenticationMissingError,
    AuthorizationDeniedError,
)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as issued by the auth layer."""
    license_key: str
    is_master: bool = False
    domain: Optional[str] = None
    customer_name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class TenancyScope:
    """Row filter for one principal. ``license_key is None`` means unrestricted."""
    license_key: Optional[str] = None

    @property
    def unrestricted(self) -> bool:
        return self.license_key is None

    def apply(self, query: Select, column: InstrumentedAttribute) -> Select:
        """Restrict a select statement on the given license-key column."""
        if self.unrestricted:
            return query
        return query.where(column == self.license_key)

    def allows(self, license_key: Optional[str]) -> bool:
        return self.unrestricted or license_key == self.license_key


def scope(principal: Optional[Principal]) -> TenancyScope:
    """Resolve the row filter for a principal."""
    if principal is None:
        raise AuthenticationMissingError()
    if principal.is_master:
        return TenancyScope()
    return TenancyScope(license_key=principal.license_key)


def require_master(principal: Optional[Principal]) -> Principal:
    """Reject anyone but the master admin for cross-tenant resources."""
    if principal is None:
        raise AuthenticationMissingError()
    if not principal.is_master:
        raise AuthorizationDeniedError()
    return principal


def require_license_access(principal: Optional[Principal], license_key: str) -> Principal:
    """Allow master, or a tenant asking about its own license."""
    if principal is None:
        raise AuthenticationMissingError()
    if not principal.is_master and principal.license_key != license_key:
        raise AuthorizationDeniedError("Unauthorised")
    return principal
