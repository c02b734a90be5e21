"""
Date arithmetic for budget periods and recurring expense schedules.

Days of the week follow ``date.weekday()``: 0 is Monday, 6 is Sunday.
Days of the month past the end of a short month are clamped to its last day.
"""
import calendar
from datetime import date, timedelta
from typing import Optional

from homebudget.app.models.models import BudgetPeriod, RecurrenceFrequency


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: date, months: int, day: Optional[int] = None) -> date:
    """Shift ``value`` by whole months, landing on ``day`` (or the same day) clamped to the month's end"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day or value.day, days_in_month(year, month)))


def period_end_date(start_date: date, period: BudgetPeriod) -> Optional[date]:
    """End date of a budget period starting on ``start_date``; None for CUSTOM"""
    if period == BudgetPeriod.WEEKLY:
        return start_date + timedelta(days=7)
    if period == BudgetPeriod.BIWEEKLY:
        return start_date + timedelta(days=14)
    if period == BudgetPeriod.MONTHLY:
        return add_months(start_date, 1)
    if period == BudgetPeriod.QUARTERLY:
        return add_months(start_date, 3)
    if period == BudgetPeriod.YEARLY:
        return add_months(start_date, 12)
    return None


def calculate_next_run(
    current: date,
    frequency: RecurrenceFrequency,
    day_of_week: Optional[int] = None,
    day_of_month: Optional[int] = None,
    month_of_year: Optional[int] = None,
) -> date:
    """The occurrence following ``current`` for a recurring schedule"""
    if frequency == RecurrenceFrequency.DAILY:
        return current + timedelta(days=1)

    if frequency == RecurrenceFrequency.WEEKLY:
        if day_of_week is None:
            return current + timedelta(days=7)
        days_until = (day_of_week - current.weekday()) % 7
        return current + timedelta(days=days_until or 7)

    if frequency == RecurrenceFrequency.BIWEEKLY:
        return current + timedelta(days=14)

    if frequency == RecurrenceFrequency.MONTHLY:
        return add_months(current, 1, day_of_month)

    if frequency == RecurrenceFrequency.QUARTERLY:
        return add_months(current, 3, day_of_month)

    if frequency == RecurrenceFrequency.YEARLY:
        year = current.year + 1
        month = month_of_year or current.month
        return date(year, month, min(day_of_month or current.day, days_in_month(year, month)))

    raise ValueError(f"Unsupported frequency: {frequency}")


def calculate_initial_next_run(
    start_date: date,
    today: date,
    frequency: RecurrenceFrequency,
    day_of_week: Optional[int] = None,
    day_of_month: Optional[int] = None,
    month_of_year: Optional[int] = None,
) -> date:
    """
    First run date for a newly created schedule.

    A start date of today or later is itself the first run. For a start date
    in the past, the first occurrence strictly after today is used; past
    occurrences are not back-filled.
    """
    if start_date >= today:
        return start_date

    if frequency == RecurrenceFrequency.DAILY:
        return today + timedelta(days=1)

    if frequency == RecurrenceFrequency.WEEKLY:
        return calculate_next_run(today, frequency, day_of_week)

    if frequency == RecurrenceFrequency.BIWEEKLY:
        intervals = (today - start_date).days // 14
        return start_date + timedelta(days=(intervals + 1) * 14)

    if frequency == RecurrenceFrequency.MONTHLY:
        day = day_of_month or start_date.day
        candidate = date(today.year, today.month, min(day, days_in_month(today.year, today.month)))
        if candidate <= today:
            candidate = add_months(candidate, 1, day)
        return candidate

    if frequency == RecurrenceFrequency.QUARTERLY:
        months_since_start = (today.year - start_date.year) * 12 + (today.month - start_date.month)
        quarters = months_since_start // 3
        candidate = add_months(start_date, quarters * 3, day_of_month)
        while candidate <= today:
            candidate = add_months(candidate, 3, day_of_month or start_date.day)
        return candidate

    if frequency == RecurrenceFrequency.YEARLY:
        month = month_of_year or start_date.month
        day = day_of_month or start_date.day
        candidate = date(today.year, month, min(day, days_in_month(today.year, month)))
        if candidate <= today:
            candidate = date(today.year + 1, month, min(day, days_in_month(today.year + 1, month)))
        return candidate

    raise ValueError(f"Unsupported frequency: {frequency}")
