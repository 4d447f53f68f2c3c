"""
Exchange calendar helpers

All "today" and "has the market closed" decisions are made in the
exchange's civil time zone, never the server's locale.
"""

import calendar
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DATE_ISO = "%Y-%m-%d"

MARKET_TIMEZONE = "America/New_York"
MARKET_OPEN_HOUR = 9
# The provider needs roughly an hour after the 16:00 close before EOD figures settle
DATA_AVAILABLE_HOUR = 17


def market_now(
    tz_name: str = MARKET_TIMEZONE,
    now: Optional[datetime] = None,
) -> datetime:
    """Current (or given) instant expressed in the exchange time zone.

    Naive ``now`` values are taken to be UTC.
    """
    tz = ZoneInfo(tz_name)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def today_in_market(
    tz_name: str = MARKET_TIMEZONE,
    now: Optional[datetime] = None,
) -> date:
    return market_now(tz_name, now).date()


def is_after_market_close(
    now: Optional[datetime] = None,
    tz_name: str = MARKET_TIMEZONE,
    open_hour: int = MARKET_OPEN_HOUR,
    data_available_hour: int = DATA_AVAILABLE_HOUR,
) -> bool:
    """
    True when end-of-day data for the current session is authoritative.

    That is from ``data_available_hour`` in the evening until
    ``open_hour`` the next morning, exchange local time.
    """
    hour = market_now(tz_name, now).hour
    return hour >= data_available_hour or hour < open_hour


def subtract_months(day: date, months: int) -> date:
    """Same day-of-month ``months`` earlier, clamped to the month's last day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))
