"""Human-readable resource ages."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def format_age(duration: timedelta) -> str:
    """Render a duration as 30s / 15m / 5h / 3d, truncating to the coarsest unit."""
    seconds = max(int(duration.total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def age_since(created: datetime | None, now: datetime | None = None) -> str:
    """Age of a resource created at `created`; naive datetimes are taken as UTC."""
    if created is None:
        return ""
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return format_age(now - created)
