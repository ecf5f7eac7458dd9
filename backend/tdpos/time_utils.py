from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return date.fromisoformat(s[:10])


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


def to_local(dt: datetime, tz: tzinfo) -> datetime:
    """Convert a UTC-naive timestamp to an aware datetime in ``tz``."""
    return dt.replace(tzinfo=timezone.utc).astimezone(tz)


def _local_to_utc_naive(local: datetime) -> datetime:
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(now_utc: datetime, tz: tzinfo) -> datetime:
    """Local midnight of the day containing ``now_utc``, as UTC-naive."""
    local = to_local(now_utc, tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return _local_to_utc_naive(midnight)


def start_of_month(now_utc: datetime, tz: tzinfo) -> datetime:
    """Midnight on the 1st of the local month containing ``now_utc``, as UTC-naive."""
    local = to_local(now_utc, tz)
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return _local_to_utc_naive(first)


def days_ago(now_utc: datetime, days: int) -> datetime:
    return now_utc - timedelta(days=days)


def period_key(dt: datetime, period: str, tz: tzinfo = timezone.utc) -> str:
    """
    Calendar bucket for a UTC-naive timestamp.

    weekly  -> ISO year-week, e.g. "2026-W07"
    monthly -> "2026-02"
    """
    local = to_local(dt, tz)
    if period == "weekly":
        iso_year, iso_week, _ = local.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if period == "monthly":
        return f"{local.year:04d}-{local.month:02d}"
    raise ValueError(f"Unknown period: {period!r} (expected 'weekly' or 'monthly')")
