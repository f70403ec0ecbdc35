from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional

# Civil dates are compared at this hour so a timezone offset never moves them across midnight
CIVIL_ANCHOR = time(12, 0)


def from_iso(s: str) -> datetime:
    # accept the trailing 'Z' written by JavaScript's toISOString()
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def parse_iso_instant(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO instant. Naive values are taken as UTC. Returns None on error."""
    if not s:
        return None
    try:
        dt = from_iso(s)
    except (ValueError, AttributeError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_civil_date(s: Optional[str]) -> Optional[date]:
    """Parse YYYY-MM-DD. A full ISO datetime is cut to its date part. Returns None on error."""
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except (ValueError, TypeError):
        return None


def parse_clock_time(s: Optional[str]) -> Optional[time]:
    """Parse HH:MM. Returns None on error."""
    if not s:
        return None
    try:
        parts = s.split(":")
        if len(parts) < 2:
            return None
        hour, minute = int(parts[0]), int(parts[1])
    except (ValueError, AttributeError):
        return None
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return time(hour, minute)
    return None


def civil_noon(d: date, tzinfo=None) -> datetime:
    return datetime.combine(d, CIVIL_ANCHOR, tzinfo=tzinfo)
