import pytest
from datetime import date

from homebudget.app.models.models import BudgetPeriod, RecurrenceFrequency
from homebudget.app.services.schedule import (
    add_months, calculate_initial_next_run, calculate_next_run, period_end_date
)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)


@pytest.mark.parametrize("period, expected", [
    (BudgetPeriod.WEEKLY, date(2024, 3, 8)),
    (BudgetPeriod.BIWEEKLY, date(2024, 3, 15)),
    (BudgetPeriod.MONTHLY, date(2024, 4, 1)),
    (BudgetPeriod.QUARTERLY, date(2024, 6, 1)),
    (BudgetPeriod.YEARLY, date(2025, 3, 1)),
    (BudgetPeriod.CUSTOM, None),
])
def test_period_end_date(period, expected):
    assert period_end_date(date(2024, 3, 1), period) == expected


def test_next_run_daily_and_biweekly():
    assert calculate_next_run(date(2024, 2, 28), RecurrenceFrequency.DAILY) == date(2024, 2, 29)
    assert calculate_next_run(date(2024, 3, 1), RecurrenceFrequency.BIWEEKLY, day_of_week=4) == date(2024, 3, 15)


def test_next_run_weekly_moves_to_the_next_matching_weekday():
    # 2024-03-04 is a Monday; 4 is Friday
    assert calculate_next_run(date(2024, 3, 4), RecurrenceFrequency.WEEKLY, day_of_week=4) == date(2024, 3, 8)
    assert calculate_next_run(date(2024, 3, 8), RecurrenceFrequency.WEEKLY, day_of_week=4) == date(2024, 3, 15)


def test_next_run_monthly_keeps_requested_day_after_short_month():
    feb = calculate_next_run(date(2024, 1, 31), RecurrenceFrequency.MONTHLY, day_of_month=31)
    assert feb == date(2024, 2, 29)
    assert calculate_next_run(feb, RecurrenceFrequency.MONTHLY, day_of_month=31) == date(2024, 3, 31)


def test_next_run_quarterly_and_yearly():
    assert calculate_next_run(date(2024, 1, 15), RecurrenceFrequency.QUARTERLY) == date(2024, 4, 15)
    assert calculate_next_run(
        date(2024, 2, 29), RecurrenceFrequency.YEARLY, day_of_month=29, month_of_year=2
    ) == date(2025, 2, 28)


def test_initial_run_is_start_date_when_not_in_the_past():
    today = date(2024, 3, 10)
    assert calculate_initial_next_run(today, today, RecurrenceFrequency.MONTHLY, day_of_month=1) == today
    assert calculate_initial_next_run(
        date(2024, 4, 2), today, RecurrenceFrequency.WEEKLY, day_of_week=0
    ) == date(2024, 4, 2)


def test_initial_run_for_past_start_is_after_today():
    today = date(2024, 3, 10)  # Sunday
    start = date(2024, 1, 1)

    assert calculate_initial_next_run(start, today, RecurrenceFrequency.DAILY) == date(2024, 3, 11)
    assert calculate_initial_next_run(start, today, RecurrenceFrequency.WEEKLY, day_of_week=0) == date(2024, 3, 11)
    assert calculate_initial_next_run(start, today, RecurrenceFrequency.BIWEEKLY, day_of_week=0) == date(2024, 3, 11)
    assert calculate_initial_next_run(start, today, RecurrenceFrequency.MONTHLY, day_of_month=5) == date(2024, 4, 5)
    assert calculate_initial_next_run(start, today, RecurrenceFrequency.MONTHLY, day_of_month=20) == date(2024, 3, 20)
    assert calculate_initial_next_run(start, today, RecurrenceFrequency.QUARTERLY) == date(2024, 4, 1)
    assert calculate_initial_next_run(
        start, today, RecurrenceFrequency.YEARLY, day_of_month=1, month_of_year=2
    ) == date(2025, 2, 1)
