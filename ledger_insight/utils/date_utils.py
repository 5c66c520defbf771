"""Date manipulation utilities"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to local wall-clock time; naive values pass through"""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_day(value: date) -> datetime:
    """Floor to 00:00:00.000000 on the same calendar day"""
    return datetime.combine(_as_date(value), time.min)


def end_of_day(value: date) -> datetime:
    """Ceil to 23:59:59.999999 on the same calendar day"""
    return datetime.combine(_as_date(value), time.max)


def is_midnight(value: datetime) -> bool:
    return value.time() == time.min


def merge_date_and_time(day: datetime, clock: Optional[datetime]) -> datetime:
    """Take Y/M/D from `day` and H:M:S from `clock`"""
    if clock is None:
        return day
    return datetime.combine(day.date(), clock.time())


def month_start(value: date) -> datetime:
    """First instant of the month containing `value`"""
    return datetime(value.year, value.month, 1)


def add_months(value: datetime, months: int) -> datetime:
    """Shift a first-of-month datetime by a signed number of months"""
    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def month_end(value: datetime) -> datetime:
    """Last instant (23:59:59.999999) of the month containing `value`"""
    return add_months(month_start(value), 1) - timedelta(microseconds=1)


def generate_month_range(start: datetime, end: datetime) -> List[datetime]:
    """Generate first-of-month datetimes from start to end (inclusive)"""
    months = []
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        months.append(current)
        current = add_months(current, 1)
    return months


def resolve_now(now: Optional[date] = None) -> datetime:
    """
    Injected clock value as local naive time, or the system clock when absent.

    A bare calendar date means the start of that day. Anything that is not a
    date falls back to the system clock.
    """
    if isinstance(now, datetime):
        return to_local_naive(now)
    if isinstance(now, date):
        return start_of_day(now)
    return datetime.now()
