from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


def local_now() -> datetime:
    """Server-side 'now' in local time (naive). Sale timestamps use this clock."""
    return datetime.now()


def start_of_window(days: int, today: Optional[date] = None) -> datetime:
    """
    Midnight of the first day of a rolling window that ends today.

    A window of N days covers today plus the N-1 days before it.
    """
    today = today or local_now().date()
    first_day = today - timedelta(days=days - 1)
    return datetime.combine(first_day, time.min)


def to_ymd(value) -> str:
    """
    Normalize a calendar day to 'YYYY-MM-DD'.

    Accepts date/datetime objects and the ISO strings SQLite returns for DATE().
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serializes a naive local datetime as ISO-8601 without microseconds."""
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat()
