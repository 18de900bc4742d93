"""Date helpers with IST as the canonical business timezone.

Timestamps are stored as naive UTC (see `utcnow`).  Anything shown to a
user, compared against "today", or bucketed into a calendar month goes
through IST first, so an invoice raised at 01:00 IST on the 1st belongs to
the new month even though it is still the previous day in UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from findesk.config import settings

IST = ZoneInfo(settings.timezone)

MONTH_ABBRS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


def utcnow() -> datetime:
    """Naive UTC timestamp for database defaults."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_ist() -> datetime:
    return datetime.now(IST)


def today_ist() -> date:
    return now_ist().date()


def ist_date_offset(days: int) -> date:
    """Date `days` away from today in IST (negative for the past)."""
    return today_ist() + timedelta(days=days)


def to_ist(value: datetime) -> datetime:
    """Convert a datetime to IST.  Naive values are assumed to be UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(IST)


def month_abbr(value: date) -> str:
    """Three-letter uppercase month, independent of the process locale."""
    return MONTH_ABBRS[value.month - 1]


def format_date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = to_ist(value).date()
    return value.strftime("%Y-%m-%d")


def format_timestamp(value: datetime | None, seconds: bool = False) -> str:
    if value is None:
        return ""
    fmt = "%Y-%m-%d %H:%M:%S" if seconds else "%Y-%m-%d %H:%M"
    return to_ist(value).strftime(fmt)
