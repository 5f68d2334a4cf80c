"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def local_date(moment: datetime, tz_name: str) -> date:
    """Calendar date of `moment` in the named timezone (naive values are UTC)"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).date()


def month_key(when: date) -> str:
    """Calendar month bucket used for retention, e.g. "2026-03" """
    return f"{when.year:04d}-{when.month:02d}"


def previous_month_key(today: date) -> str:
    """Month key for the calendar month before `today`"""
    if today.month == 1:
        return f"{today.year - 1:04d}-12"
    return f"{today.year:04d}-{today.month - 1:02d}"
