from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .errors import ValidationError


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str], *, field: str = "datetime") -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped

    Raises ValidationError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        if not isinstance(value, str):
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
        s = value.strip()
        if not s:
            return None

        # Accept trailing Z
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"

        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")

    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def within_window(now: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    """Inclusive check of now against an optional [start, end] window."""
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True
