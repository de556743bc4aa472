"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from insight_engine.auth.tokens import verify_access_token
from insight_engine.cli import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    monkeypatch.setenv("INSIGHT_JWT_SECRET", "cli-test-jwt-secret")
    monkeypatch.setenv("INSIGHT_SECRET_KEY", "cli-test-cookie-secret")
    monkeypatch.setenv("INSIGHT_MASTER_LICENSE_KEY", "cli-test-master")
    from insight_engine.common.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_token_for_tenant():
    result = runner.invoke(app, ["token", "LIC-A", "--domain", "shop.example.com"])
    assert result.exit_code == 0
    principal = verify_access_token(result.stdout.strip())
    assert principal.license_key == "LIC-A"
    assert principal.domain == "shop.example.com"
    assert principal.is_master is False


def test_token_for_master():
    result = runner.invoke(app, ["token", "cli-test-master", "--master"])
    assert result.exit_code == 0
    assert verify_access_token(result.stdout.strip()).is_master is True


def test_health_unreachable():
    result = runner.invoke(app, ["health", "--url", "http://127.0.0.1:9"])
    assert result.exit_code == 1
