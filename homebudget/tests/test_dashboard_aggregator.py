import pytest
from datetime import date, datetime
from types import SimpleNamespace

from homebudget.app.models.models import BudgetPeriod, ExpenseType
from homebudget.app.services.dashboard_aggregator import (
    UNCATEGORIZED_ID,
    build_category_breakdown,
    build_daily_breakdown,
    build_member_contributions,
    build_monthly_summary,
    build_week_over_week,
    parse_month,
    project_spending,
    resolve_period,
)

GROCERIES = SimpleNamespace(id="cat-groceries", name="Groceries")
DINING = SimpleNamespace(id="cat-dining", name="Dining")
ALICE = SimpleNamespace(name="Alice", email="alice@example.com")
BOB = SimpleNamespace(name="Bob", email="bob@example.com")


def row(amount, day, category=None, user_id="alice", user=ALICE, type=ExpenseType.EXPENSE, budget_id=None):
    return SimpleNamespace(
        amount=amount,
        type=type,
        date=date(2024, 3, day),
        budget_id=budget_id,
        category_id=category.id if category else None,
        category=category,
        user_id=user_id,
        user=user,
    )


# --- Period resolution ---

def test_resolve_period_for_explicit_month():
    period = resolve_period(month="2024-02", now=datetime(2024, 3, 15, 12))

    assert period.start_date == date(2024, 2, 1)
    assert period.end_date == date(2024, 2, 29)
    assert period.total_days == 29
    # The month is over, so every day has elapsed
    assert period.days_elapsed == 29


def test_resolve_period_defaults_to_current_month():
    period = resolve_period(now=datetime(2024, 3, 10, 8, 30))

    assert (period.year, period.month) == (2024, 3)
    assert period.total_days == 31
    assert period.days_elapsed == 10


def test_resolve_period_future_month_has_nothing_elapsed():
    period = resolve_period(month="2024-05", now=datetime(2024, 3, 10))

    assert period.days_elapsed == 0


def test_resolve_period_custom_range():
    period = resolve_period(start_date=date(2024, 3, 5), end_date=date(2024, 3, 11), now=datetime(2024, 4, 1))

    assert period.total_days == 7
    assert period.days_elapsed == 7


@pytest.mark.parametrize("month", ["2024-13", "2024-00", "March", "2024-3", ""])
def test_parse_month_rejects_malformed(month):
    with pytest.raises(ValueError):
        parse_month(month)


def test_resolve_period_rejects_inverted_range():
    with pytest.raises(ValueError):
        resolve_period(start_date=date(2024, 3, 10), end_date=date(2024, 3, 1))


# --- Breakdowns ---

def test_category_breakdown_with_uncategorized_bucket():
    expenses = [
        row(60.0, 1, GROCERIES),
        row(30.0, 2, DINING),
        row(10.0, 3),
        row(500.0, 4, GROCERIES, type=ExpenseType.INCOME),
    ]

    breakdown = build_category_breakdown(expenses, 100.0)
    names = [bucket["name"] for bucket in breakdown["all"]]

    assert names == ["Groceries", "Dining", "Uncategorized"]
    assert breakdown["all"][0]["total"] == 60.0
    assert breakdown["all"][0]["count"] == 1
    assert breakdown["all"][2]["id"] == UNCATEGORIZED_ID
    assert sum(bucket["percentage"] for bucket in breakdown["all"]) == pytest.approx(100.0, abs=0.05)
    assert len(set(names)) == len(names)


def test_category_breakdown_top5_is_a_prefix():
    categories = [SimpleNamespace(id=f"c{i}", name=f"Cat {i}") for i in range(7)]
    expenses = [row(float(10 + i), 1, category) for i, category in enumerate(categories)]

    breakdown = build_category_breakdown(expenses, sum(e.amount for e in expenses))

    assert len(breakdown["all"]) == 7
    assert breakdown["top5"] == breakdown["all"][:5]
    assert breakdown["top5"][0]["name"] == "Cat 6"


def test_category_breakdown_attaches_allocations():
    budget = SimpleNamespace(allocations=[SimpleNamespace(category_id=GROCERIES.id, allocated_amount=250.0)])

    breakdown = build_category_breakdown([row(60.0, 1, GROCERIES), row(20.0, 1, DINING)], 80.0, budget)
    by_name = {bucket["name"]: bucket for bucket in breakdown["all"]}

    assert by_name["Groceries"]["budget_amount"] == 250.0
    assert by_name["Dining"]["budget_amount"] is None


def test_member_contributions_sorted_by_total():
    expenses = [
        row(20.0, 1, user_id="alice", user=ALICE),
        row(50.0, 2, user_id="bob", user=BOB),
        row(30.0, 3, user_id="alice", user=ALICE),
        row(100.0, 3, user_id="alice", user=ALICE, type=ExpenseType.INCOME),
    ]

    contributions = build_member_contributions(expenses, 100.0)

    assert [member["user_id"] for member in contributions] == ["alice", "bob"]
    assert contributions[0]["total"] == 50.0
    assert contributions[0]["percentage"] == 50.0
    assert contributions[1]["name"] == "Bob"


def test_daily_breakdown_is_gap_free():
    expenses = [row(12.5, 2), row(7.5, 2), row(30.0, 5), row(99.0, 4, type=ExpenseType.INCOME)]

    daily = build_daily_breakdown(expenses, date(2024, 3, 1), date(2024, 3, 31))

    assert len(daily) == 31
    assert daily[0] == {"date": "2024-03-01", "total": 0.0}
    assert daily[1]["total"] == 20.0
    assert daily[3]["total"] == 0.0
    assert sum(day["total"] for day in daily) == pytest.approx(50.0)


def test_week_over_week_covers_every_day():
    daily = build_daily_breakdown([row(10.0, day) for day in range(1, 32)], date(2024, 3, 1), date(2024, 3, 31))

    weeks = build_week_over_week(daily)

    assert [week["days"] for week in weeks] == [7, 7, 7, 7, 3]
    assert [week["week_number"] for week in weeks] == [1, 2, 3, 4, 5]
    assert sum(week["total"] for week in weeks) == pytest.approx(sum(day["total"] for day in daily))


def test_project_spending_floors_elapsed_days():
    assert project_spending(100.0, 10, 30) == 300.0
    assert project_spending(15.0, 0, 31) == 465.0


# --- Full summary ---

def test_monthly_summary_scoped_to_budget():
    budget = SimpleNamespace(id="b1", name="March", amount=400.0, period=BudgetPeriod.MONTHLY, allocations=[])
    expenses = [
        row(100.0, 1, GROCERIES, budget_id="b1"),
        row(50.0, 2, DINING, budget_id="b1"),
        row(75.0, 3, DINING),
        row(1000.0, 4, type=ExpenseType.INCOME, budget_id="b1"),
    ]
    period = resolve_period(month="2024-03", now=datetime(2024, 3, 15, 12))

    summary = build_monthly_summary(expenses, period, budget)

    assert summary["selected_budget"]["id"] == "b1"
    totals = summary["summary"]
    assert totals["total_expenses"] == 150.0
    assert totals["total_income"] == 1000.0
    assert totals["net"] == 850.0
    assert totals["budget_remaining"] == 250.0
    assert totals["budget_usage_percentage"] == 37.5
    assert totals["total_transactions"] == 2
    assert summary["trends"]["projected_spending"] == 310.0
    assert len(summary["trends"]["daily_breakdown"]) == 31


def test_monthly_summary_without_budget_uses_all_expenses():
    expenses = [row(100.0, 1, budget_id="b1"), row(50.0, 2)]
    period = resolve_period(month="2024-03", now=datetime(2024, 4, 1))

    summary = build_monthly_summary(expenses, period)

    assert summary["selected_budget"] is None
    assert summary["summary"]["total_expenses"] == 150.0
    assert summary["summary"]["total_budget_amount"] == 0.0
    assert summary["summary"]["budget_usage_percentage"] == 0.0
