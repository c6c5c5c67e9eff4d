"""Timestamp parsing helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None

    normalized = value.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Parse 'YYYY-MM-DD' (or a full timestamp) into an inclusive UTC range bound."""
    if not value:
        return None

    try:
        day = date.fromisoformat(value)
    except ValueError:
        return parse_timestamp(value)

    clock = time.max if end_of_day else time.min
    return datetime.combine(day, clock, tzinfo=timezone.utc)
