"""Calendar helpers for trailing windows and elapsed-time valuation."""
from datetime import date, datetime, time, timedelta
from decimal import Decimal

DAYS_PER_YEAR = Decimal("365.25")
SECONDS_PER_DAY = Decimal("86400")


def month_start(day: date, offset: int = 0) -> date:
    """First day of the calendar month `offset` months away from `day`'s month."""
    month_index = day.year * 12 + (day.month - 1) + offset
    return date(month_index // 12, month_index % 12 + 1, 1)


def trailing_window_start(today: date, months: int = 3) -> date:
    """First day of the calendar month `months` months before `today`."""
    return month_start(today, -months)


def as_datetime(value: date | datetime, tzinfo=None) -> datetime:
    """
    Promote a date to midnight of that day; datetimes pass through.

    A naive result is given `tzinfo` when one is passed, so it can be
    subtracted from an aware datetime in that zone.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None and tzinfo is not None:
        value = value.replace(tzinfo=tzinfo)
    return value


def years_elapsed(start: date | datetime, now: date | datetime) -> Decimal:
    """
    Elapsed time in years of 365.25 days; negative if start is in the future.

    When only one side carries a timezone, the naive side is read as wall
    time in that zone.
    """
    end = as_datetime(now)
    begin = as_datetime(start, end.tzinfo)
    end = as_datetime(end, begin.tzinfo)
    delta: timedelta = end - begin
    seconds = Decimal(delta.days) * SECONDS_PER_DAY + Decimal(delta.seconds) \
        + Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / SECONDS_PER_DAY / DAYS_PER_YEAR
