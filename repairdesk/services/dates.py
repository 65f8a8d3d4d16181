"""
Date Helpers

Ticket date fields were written by several generations of the shop app, so a
stored value may be a native datetime, a date, an ISO-8601 string, an empty
string, null, or missing entirely. Every caller goes through parse_date_like()
instead of checking the representation itself.

"Local" means the shop's wall clock: SHOP_TIMEZONE when configured, else the
server's local zone.
- parse_date_like() returns naive local datetimes (for comparing and bucketing)
- localize() / local_now() return aware datetimes (for writing to storage, so
  the stored instant is correct whatever the driver assumes about naive values)
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

from repairdesk import config

DateLike = Union[datetime, date, str, None]

DAY_FORMAT = "%Y-%m-%d"


def shop_timezone() -> Optional[tzinfo]:
    """Configured shop zone; None means the server's local zone"""
    if not config.SHOP_TIMEZONE:
        return None
    return ZoneInfo(config.SHOP_TIMEZONE)


def to_local_naive(value: datetime) -> datetime:
    """Naive local wall time; naive input is assumed to be local already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(shop_timezone()).replace(tzinfo=None)


def localize(value: datetime) -> datetime:
    """Aware local datetime; naive input is read as local wall time"""
    zone = shop_timezone()
    if value.tzinfo is not None:
        return value.astimezone(zone)
    if zone is None:
        return value.astimezone()
    return value.replace(tzinfo=zone)


def local_now() -> datetime:
    """Current time as an aware local datetime"""
    return datetime.now(timezone.utc).astimezone(shop_timezone())


def timezone_name() -> str:
    """Zone for database-side date parsing: the IANA name, or the current UTC offset"""
    return config.SHOP_TIMEZONE or local_now().strftime("%z")


def parse_date_like(value: DateLike) -> Optional[datetime]:
    """
    Parse a DateLike value into a naive local datetime.

    Returns None for None, empty/blank strings and anything unparseable.
    Plain dates become midnight of that day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return to_local_naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string, None if missing or malformed"""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DAY_FORMAT).date()
    except ValueError:
        return None


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """23:59:59.999 on the given day"""
    return datetime.combine(day, time(23, 59, 59, 999000))


def months_back(moment: datetime, months: int) -> datetime:
    """Same wall-clock moment `months` calendar months earlier, clamped to month end"""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Last day of the target month
    if month == 12:
        next_month = datetime(year + 1, 1, 1)
    else:
        next_month = datetime(year, month + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def format_day(value: datetime) -> str:
    return value.strftime(DAY_FORMAT)
