"""
Write window for engine-initiated (fill) writes.

Catalog reads may only materialize derived prices for nights inside
[today - past_days, today + future_days]. Partner saves never consult this.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

DEFAULT_PAST_DAYS = 2
DEFAULT_FUTURE_DAYS = 183  # ~6 months


def today_in_zone(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """Resolve the current calendar date in the pricing timezone."""
    tz = ZoneInfo(tz_name or "UTC")
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    return now.astimezone(tz).date()


def write_window(
    today: date,
    past_days: int = DEFAULT_PAST_DAYS,
    future_days: int = DEFAULT_FUTURE_DAYS
) -> Tuple[date, date]:
    """Return the inclusive (start, end) bounds of the window."""
    return today - timedelta(days=past_days), today + timedelta(days=future_days)


def is_writable(
    target: date,
    today: date,
    past_days: int = DEFAULT_PAST_DAYS,
    future_days: int = DEFAULT_FUTURE_DAYS
) -> bool:
    """True iff target falls inside the write window around today."""
    start, end = write_window(today, past_days, future_days)
    return start <= target <= end
