"""Pure aggregation helpers: distributions, daily series, trends, peak hour, revenue."""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, Optional, Sequence

from insight_engine.sessions.reconstructor import MAX_SESSION_SECONDS, Session

UNKNOWN_LABEL = "Unknown"
DEFAULT_PLAN_LABEL = "Basic"
DEFAULT_STATUS_LABEL = "unknown"
NONE_LABEL = "None"

PLAN_PRICES: dict[str, int] = {
    "basic": 29,
    "pro": 99,
    "enterprise": 299,
    "starter": 19,
}
BASE_PRICE = 29

DATE_RANGES: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_DATE_RANGE = "30d"


@dataclass
class Bucket:
    label: str
    count: int
    percentage: int


@dataclass
class SeriesPoint:
    date: str
    count: int


def round_half_up(value: float) -> int:
    """Round halves upward (2.5 -> 3, -2.5 -> -2), matching the dashboard clients."""
    return math.floor(value + 0.5)


def percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def distribution(
    values: Iterable[Optional[str]],
    default_label: str = UNKNOWN_LABEL,
) -> list[Bucket]:
    """Count values into buckets, biggest first. Missing values fall into ``default_label``."""
    counts = Counter(v if v else default_label for v in values)
    total = sum(counts.values())
    buckets = [
        Bucket(label=label, count=count, percentage=percentage(count, total))
        for label, count in counts.items()
    ]
    buckets.sort(key=lambda b: (-b.count, b.label))
    return buckets


def dominant_label(buckets: Sequence[Any], attr: str = "label") -> str:
    if not buckets:
        return NONE_LABEL
    first = buckets[0]
    return first[attr] if isinstance(first, dict) else getattr(first, attr)


def resolve_date_range(date_range: Optional[str], now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Translate ``7d``/``30d``/``90d`` into (start, now). Unknown ranges mean 30 days."""
    now = now or datetime.now(timezone.utc)
    days = DATE_RANGES.get(date_range or DEFAULT_DATE_RANGE, DATE_RANGES[DEFAULT_DATE_RANGE])
    return now - timedelta(days=days), now


def _utc_day(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def date_keys(start: datetime, end: datetime) -> list[str]:
    """Every UTC calendar day from start to end inclusive as ``YYYY-MM-DD``."""
    first, last = _utc_day(start), _utc_day(end)
    days = (last - first).days
    return [(first + timedelta(days=i)).isoformat() for i in range(days + 1)]


def daily_series(
    timestamps: Iterable[Optional[datetime]],
    start: datetime,
    end: datetime,
) -> list[SeriesPoint]:
    """Per-day counts over [start, end] with zero-filled gaps."""
    keys = date_keys(start, end)
    counts: Counter[str] = Counter()
    start_utc = start if start.tzinfo else start.replace(tzinfo=timezone.utc)
    for ts in timestamps:
        if ts is None:
            continue
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        if ts < start_utc:
            continue
        counts[_utc_day(ts).isoformat()] += 1
    return [SeriesPoint(date=k, count=counts.get(k, 0)) for k in keys]


def growth(previous: int | float, current: int | float) -> int:
    """Period-over-period change in percent.

    A jump from nothing to something counts as 100; nothing to nothing is 0.
    """
    if previous > 0:
        return round_half_up((current - previous) / previous * 100)
    return 100 if current > 0 else 0


def split_trend(series: Sequence[SeriesPoint]) -> int:
    """Compare the second half of a series to the first half (split at n // 2)."""
    mid = len(series) // 2
    first = sum(p.count for p in series[:mid])
    second = sum(p.count for p in series[mid:])
    if first > 0:
        return round_half_up((second - first) / first * 100)
    return 0


def peak_hour(timestamps: Iterable[Optional[datetime]], tz: tzinfo = timezone.utc) -> int:
    """Busiest hour of day (0-23) across all days; ties go to the earliest hour."""
    counts = [0] * 24
    for ts in timestamps:
        if ts is None:
            continue
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        counts[ts.astimezone(tz).hour] += 1
    peak = 0
    for hour in range(24):
        if counts[hour] > counts[peak]:
            peak = hour
    return peak


def plan_price(plan: Optional[str]) -> int:
    if not plan:
        return BASE_PRICE
    return PLAN_PRICES.get(plan.lower(), BASE_PRICE)


def revenue(subscriptions: Iterable[tuple[Optional[str], Optional[str]]]) -> int:
    """Sum plan prices over ``(plan, subscription_status)`` pairs that are actively subscribed."""
    total = 0
    for plan, subscription_status in subscriptions:
        if subscription_status == "active" and plan:
            total += plan_price(plan)
    return total


def average_duration(sessions: Iterable[Session]) -> int:
    """Mean of the raw spans inside (0, 86400) seconds, rounded once; 0 if none."""
    durations = [
        s.span_seconds for s in sessions
        if 0 < s.span_seconds < MAX_SESSION_SECONDS
    ]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def average_messages(sessions: Sequence[Session]) -> int:
    if not sessions:
        return 0
    return round_half_up(sum(s.message_count for s in sessions) / len(sessions))
