"""Core utility functions."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Get current UTC datetime with timezone info. Always use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware (UTC).

    The Twilio SDK returns aware datetimes, but records built by hand
    (tests, fixtures) may not carry a tzinfo.

    Args:
        dt: A datetime that may or may not be timezone-aware.

    Returns:
        Timezone-aware datetime in UTC, or None if input was None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Assume naive datetimes are UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """Return the aware UTC instant ``days`` days before ``now``."""
    reference = ensure_aware(now) or utcnow()
    return reference - timedelta(days=days)


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Mask all but the last ``visible`` characters of a credential for display."""
    if not value:
        return "<not set>"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


__all__ = [
    "utcnow",
    "ensure_aware",
    "days_ago",
    "mask_secret",
]
