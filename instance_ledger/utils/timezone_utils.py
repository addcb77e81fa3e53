from __future__ import annotations

from datetime import datetime, timezone as dt_timezone


class TimezoneUtils:
    """Utilities for consistent UTC handling across the ledger."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def ensure_timezone_aware(dt: datetime | None, assume_utc: bool = True) -> datetime | None:
        """Attach UTC to naive values (SQLite returns naive datetimes)."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=dt_timezone.utc) if assume_utc else dt
        return dt

    @staticmethod
    def format_datetime_for_api(dt: datetime | None) -> str | None:
        """ISO-8601 in UTC with a trailing Z, or None."""
        aware = TimezoneUtils.ensure_timezone_aware(dt)
        if aware is None:
            return None
        return aware.astimezone(dt_timezone.utc).isoformat().replace("+00:00", "Z")
