"""Danish market timezone utilities.

Day-ahead prices are quoted per local hour in Europe/Copenhagen:
- Hour 0 = 00:00-01:00 Danish time
- Hour 23 = 23:00-00:00 Danish time

Clock change days have a different number of hours:
- Spring forward (March): 23 hours, local 02:00 does not exist
- Fall back (October): 25 hours, local 02:00 occurs twice

Everything here works on the market's named timezone, never on the
process's local timezone.
"""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

MARKET_TZ = ZoneInfo("Europe/Copenhagen")


def get_market_now(tz: ZoneInfo = MARKET_TZ) -> datetime:
    """Get current time in the market timezone."""
    return datetime.now(tz)


def get_market_today(tz: ZoneInfo = MARKET_TZ) -> date:
    """Get today's date in the market timezone."""
    return get_market_now(tz).date()


def get_market_tomorrow(tz: ZoneInfo = MARKET_TZ) -> date:
    """Get tomorrow's date in the market timezone."""
    return get_market_today(tz) + timedelta(days=1)


def to_market_time(moment: datetime, tz: ZoneInfo = MARKET_TZ) -> datetime:
    """Convert an offset-aware datetime to market local time.

    Args:
        moment: Datetime carrying a UTC offset

    Returns:
        The same instant expressed in the market timezone

    Raises:
        ValueError: If the datetime is naive

    Example:
        >>> to_market_time(datetime.fromisoformat("2025-09-20T22:00:00+00:00")).hour
        0
    """
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError(f"Cannot convert naive datetime {moment.isoformat()} to market time")
    return moment.astimezone(tz)


def get_hours_in_day(d: date, tz: ZoneInfo = MARKET_TZ) -> int:
    """Get the number of hours in a given market day.

    Args:
        d: Date to check

    Returns:
        Number of hours (23, 24, or 25)
    """
    start = datetime.combine(d, time(0, 0), tzinfo=tz)
    end = datetime.combine(d + timedelta(days=1), time(0, 0), tzinfo=tz)

    # Aware subtraction across zones goes through UTC
    return int((end.astimezone(ZoneInfo("UTC")) - start.astimezone(ZoneInfo("UTC"))).total_seconds() // 3600)
