"""UTC calendar windows used by view de-duplication, stats and charts."""
from datetime import date, datetime, timedelta, UTC
from typing import List, Optional, Tuple


def start_of_utc_day(moment: Optional[datetime] = None) -> datetime:
    moment = (moment or datetime.now(UTC)).astimezone(UTC)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def today_and_yesterday(moment: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Return (start of today, start of yesterday) in UTC."""
    today = start_of_utc_day(moment)
    return today, today - timedelta(days=1)


def start_of_utc_month(moment: Optional[datetime] = None) -> datetime:
    return start_of_utc_day(moment).replace(day=1)


def days_ago(days: int, moment: Optional[datetime] = None) -> datetime:
    return (moment or datetime.now(UTC)) - timedelta(days=days)


def utc_days(start: datetime, end: Optional[datetime] = None) -> List[date]:
    """Every UTC calendar day from ``start`` through ``end`` (default now), inclusive."""
    first = start_of_utc_day(start).date()
    last = start_of_utc_day(end).date()
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]
