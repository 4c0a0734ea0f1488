"""
time_utils.py — UTC helpers for tender dates.

Scrapers publish timestamps with and without offsets ("2025-03-01T10:00:00Z",
"2025-03-01T10:00:00", "2025-03-01"). Everything stored by the writer is
timezone-aware UTC.

Usage:
    from tender_shared.time_utils import utc_now, ensure_utc, is_no_deadline

    now = utc_now()
    closing = ensure_utc(message.closing_date)
"""

from __future__ import annotations

from datetime import datetime, timezone

from tender_shared.constants import NO_DEADLINE


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC. None passes through.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_no_deadline(value: datetime | None) -> bool:
    """True for an absent closing date or the NO_DEADLINE sentinel."""
    if value is None:
        return True
    return ensure_utc(value) >= NO_DEADLINE


def isoformat_z(value: datetime) -> str:
    """ISO-8601 with a trailing Z, e.g. 2025-01-01T00:00:00.000000Z."""
    aware = ensure_utc(value)
    return aware.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
