"""Tests for tenancy scoping."""

import pytest
from sqlalchemy import select

from insight_engine.common.exceptions import (
    AuthenticationMissingError,
    AuthorizationDeniedError,
)
from insight_engine.events.models import EventLogModel
from insight_engine.tenancy.scope import (
    Principal,
    TenancyScope,
    require_license_access,
    require_master,
    scope,
)


MASTER = Principal(license_key="MASTER", is_master=True, domain="ALL_DOMAINS")
TENANT = Principal(license_key="LIC-A", domain="a.example.com")


class TestScope:
    def test_master_is_unrestricted(self):
        s = scope(MASTER)
        assert s.unrestricted
        assert s.allows("LIC-A")
        assert s.allows("LIC-B")

    def test_tenant_is_pinned(self):
        s = scope(TENANT)
        assert s.license_key == "LIC-A"
        assert s.allows("LIC-A")
        assert not s.allows("LIC-B")
        assert not s.allows(None)

    def test_missing_principal(self):
        with pytest.raises(AuthenticationMissingError):
            scope(None)

    def test_apply_adds_predicate(self):
        query = select(EventLogModel.id)
        scoped = TenancyScope(license_key="LIC-A").apply(query, EventLogModel.license_key)
        assert "license_key" in str(scoped.whereclause)
        assert TenancyScope().apply(query, EventLogModel.license_key) is query


class TestRoleGuards:
    def test_require_master(self):
        assert require_master(MASTER) is MASTER
        with pytest.raises(AuthorizationDeniedError) as exc_info:
            require_master(TENANT)
        assert exc_info.value.status_code == 403
        with pytest.raises(AuthenticationMissingError):
            require_master(None)

    def test_license_access(self):
        assert require_license_access(TENANT, "LIC-A") is TENANT
        assert require_license_access(MASTER, "LIC-Z") is MASTER
        with pytest.raises(AuthorizationDeniedError) as exc_info:
            require_license_access(TENANT, "LIC-B")
        assert exc_info.value.message == "Unauthorised"
