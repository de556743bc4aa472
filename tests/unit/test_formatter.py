"""Tests for chart and payload formatting."""

from datetime import datetime, timedelta, timezone

from insight_engine.metrics.aggregator import distribution
from insight_engine.presentation.formatter import (
    DEFAULT_COLOR,
    capitalize,
    format_duration,
    plan_chart,
    product_chart,
    product_info,
    session_payload,
    status_chart,
)
from insight_engine.sessions.reconstructor import Session


T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def test_format_duration():
    assert format_duration(0) == "N/A"
    assert format_duration(42) == "42s"
    assert format_duration(300) == "5m"
    assert format_duration(3900) == "1h 5m"
    assert format_duration(7200) == "2h 0m"


def test_capitalize():
    assert capitalize("pro") == "Pro"
    assert capitalize("setup-agent") == "Setup-agent"
    assert capitalize("") == ""


def test_product_info_known_and_unknown():
    assert product_info("chatbot")["name"] == "Chatbot"
    assert product_info("Setup-Agent")["name"] == "Setup Agent"
    custom = product_info("widget-builder")
    assert custom["name"] == "widget-builder"
    assert custom["color"] == DEFAULT_COLOR
    assert product_info(None)["name"] == "Unknown"


def test_product_chart():
    buckets = distribution(["chatbot", "chatbot", "sales-agent", None])
    raw = {"chatbot": "chatbot", "sales-agent": "sales-agent", "Unknown": None}
    chart = product_chart(buckets, raw)
    assert chart[0] == {
        "name": "Chatbot",
        "value": 2,
        "percentage": 50,
        "color": "hsl(var(--chart-1))",
        "productType": "chatbot",
    }
    unknown = next(c for c in chart if c["name"] == "Unknown")
    assert unknown["productType"] is None


def test_plan_chart_uses_total():
    chart = plan_chart(distribution(["pro", "basic", "basic"]), total=4)
    assert chart == [
        {"name": "Basic", "value": 2, "percentage": 50},
        {"name": "Pro", "value": 1, "percentage": 25},
    ]


def test_status_chart():
    chart = status_chart(distribution(["active", "trial", "active"]), {"active": "active", "trial": "trial"})
    assert chart[0]["name"] == "Active"
    assert chart[0]["status"] == "active"


def test_session_payload():
    s = Session("s1", 3, T0, T0 + timedelta(seconds=75), domain=None, license_key="LIC-A")
    payload = session_payload(s, "Not configured")
    assert payload == {
        "sessionId": "s1",
        "domain": "Not configured",
        "messageCount": 3,
        "startTime": "2026-01-05T09:00:00+00:00",
        "lastActivity": "2026-01-05T09:01:15+00:00",
        "duration": 75,
    }
    assert session_payload(s, "x", include_license=True)["licenseKey"] == "LIC-A"
