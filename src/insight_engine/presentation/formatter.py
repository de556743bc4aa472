"""Shape aggregates into the JSON contracts the dashboard charts read."""

from datetime import datetime
from typing import Any, Iterable, Optional

from insight_engine.metrics.aggregator import Bucket, SeriesPoint, percentage
from insight_engine.sessions.reconstructor import Conversation, Session

NOT_AVAILABLE = "N/A"
DEFAULT_COLOR = "hsl(var(--chart-1))"

PRODUCT_INFO: dict[str, dict[str, str]] = {
    "chatbot": {
        "name": "Chatbot",
        "color": "hsl(var(--chart-1))",
        "description": "AI-powered customer support chatbot",
    },
    "setup-agent": {
        "name": "Setup Agent",
        "color": "hsl(var(--chart-2))",
        "description": "Automated onboarding and setup assistant",
    },
    "email-assistant": {
        "name": "Email Assistant",
        "color": "hsl(var(--chart-3))",
        "description": "Inbox triage and reply drafting assistant",
    },
    "voice-assistant": {
        "name": "Voice Assistant",
        "color": "hsl(var(--chart-4))",
        "description": "Voice channel conversational agent",
    },
    "analytics": {
        "name": "Analytics",
        "color": "hsl(var(--chart-5))",
        "description": "Usage analytics add-on",
    },
    "sales-agent": {
        "name": "Sales Agent",
        "color": "hsl(var(--chart-2))",
        "description": "AI sales representative and lead qualifier",
    },
}


def product_info(product_type: Optional[str]) -> dict[str, str]:
    """Display name, color and blurb for a product type; unknown types keep their raw name."""
    name = product_type or "Unknown"
    info = PRODUCT_INFO.get(name.lower())
    if info is None:
        return {"name": name, "color": DEFAULT_COLOR, "description": ""}
    return info


def capitalize(label: str) -> str:
    """Upper-case the first letter only ("pro" -> "Pro", "setup-agent" -> "Setup-agent")."""
    return label[:1].upper() + label[1:]


def format_duration(seconds: int) -> str:
    if seconds <= 0:
        return NOT_AVAILABLE
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def series_payload(points: Iterable[SeriesPoint]) -> list[dict[str, Any]]:
    return [{"date": p.date, "count": p.count} for p in points]


def product_chart(buckets: Iterable[Bucket], raw_types: dict[str, Optional[str]]) -> list[dict[str, Any]]:
    """Product buckets as chart slices. ``raw_types`` maps bucket label to the stored value."""
    slices = []
    for b in buckets:
        info = product_info(b.label)
        slices.append({
            "name": info["name"],
            "value": b.count,
            "percentage": b.percentage,
            "color": info["color"],
            "productType": raw_types.get(b.label),
        })
    return slices


def plan_chart(buckets: Iterable[Bucket], total: int) -> list[dict[str, Any]]:
    return [
        {
            "name": capitalize(b.label),
            "value": b.count,
            "percentage": percentage(b.count, total),
        }
        for b in buckets
    ]


def status_chart(buckets: Iterable[Bucket], raw_statuses: dict[str, Optional[str]]) -> list[dict[str, Any]]:
    return [
        {
            "name": capitalize(b.label),
            "value": b.count,
            "percentage": b.percentage,
            "status": raw_statuses.get(b.label),
        }
        for b in buckets
    ]


def session_payload(
    s: Session,
    domain_fallback: str,
    include_license: bool = False,
) -> dict[str, Any]:
    payload = {
        "sessionId": s.session_id,
        "domain": s.domain or domain_fallback,
        "messageCount": s.message_count,
        "startTime": iso(s.start_time),
        "lastActivity": iso(s.end_time),
        "duration": s.duration,
    }
    if include_license:
        payload["licenseKey"] = s.license_key
    return payload


def conversation_payload(c: Conversation) -> dict[str, Any]:
    return {
        "sessionId": c.session_id,
        "domain": c.domain,
        "conversationId": c.conversation_id,
        "userId": c.user_id,
        "startTime": iso(c.start_time),
        "lastActivity": iso(c.last_activity),
        "messages": [
            {
                "id": m.id,
                "role": m.role,
                "content": m.content,
                "timestamp": iso(m.timestamp),
                "intentDetected": m.intent_detected,
            }
            for m in c.messages
        ],
    }
