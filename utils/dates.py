from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional


def parse_start(value: Any) -> Optional[datetime]:
    """
    Best-effort parser for event date_start values.
    Accepts ISO strings (with or without 'Z') or datetime objects.
    Returns an aware UTC-comparable datetime or None if parsing fails.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, str):
        s = value.strip()
        try:
            if s.endswith("Z"):
                s = s[:-1] + "+00:00"
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    return None


def parse_bound(value: str) -> Optional[datetime]:
    """A YYYY-MM-DD filter bound, as midnight UTC of that day."""
    if not value:
        return None
    d = date.fromisoformat(value)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
