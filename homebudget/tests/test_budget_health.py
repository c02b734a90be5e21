from datetime import date, datetime
from types import SimpleNamespace

from homebudget.app.models.models import BudgetHealthStatus, BudgetPeriod, ExpenseType
from homebudget.app.services.budget_health import evaluate_budget_health, is_active

NOW = datetime(2024, 3, 15, 12)


def budget(id, amount, spent, start=date(2024, 3, 1), end=date(2024, 3, 31), category=None):
    return SimpleNamespace(
        id=id,
        name=f"Budget {id}",
        amount=amount,
        period=BudgetPeriod.MONTHLY,
        start_date=start,
        end_date=end,
        category=category,
        expenses=[SimpleNamespace(amount=value, type=ExpenseType.EXPENSE) for value in spent],
    )


def test_is_active():
    today = NOW.date()
    assert is_active(budget("a", 1, [], end=None), today)
    assert is_active(budget("a", 1, [], end=date(2024, 3, 16)), today)
    assert not is_active(budget("a", 1, [], end=today), today)
    assert not is_active(budget("a", 1, [], end=date(2024, 3, 14)), today)


def test_health_report_groups_by_status():
    budgets = [
        budget("over", 200.0, [100.0, 80.0]),
        budget("warn", 100.0, [75.0], end=None),
        budget("ok", 100.0, [10.0], category=SimpleNamespace(id="c1", name="Groceries")),
        budget("ended", 100.0, [500.0], start=date(2024, 2, 1), end=date(2024, 3, 1)),
    ]

    report = evaluate_budget_health(budgets, NOW)

    assert report["summary"] == {"total": 3, "on_track": 1, "warning": 1, "over_budget": 1}
    assert [entry["id"] for entry in report["grouped"]["OVER_BUDGET"]] == ["over"]
    assert [entry["id"] for entry in report["grouped"]["WARNING"]] == ["warn"]
    assert [entry["id"] for entry in report["grouped"]["ON_TRACK"]] == ["ok"]
    assert "ended" not in [entry["id"] for entry in report["budgets"]]


def test_health_entry_projection_and_days_remaining():
    report = evaluate_budget_health([budget("over", 200.0, [180.0])], NOW)
    entry = report["budgets"][0]

    assert entry["spent"] == 180.0
    assert entry["remaining"] == 20.0
    assert entry["percentage"] == 90.0
    assert entry["health_status"] == BudgetHealthStatus.OVER_BUDGET
    assert entry["days_remaining"] == 16
    assert entry["projected_spending"] == 360.0


def test_open_ended_budget_has_no_projection():
    entry = evaluate_budget_health([budget("open", 100.0, [20.0], end=None)], NOW)["budgets"][0]

    assert entry["days_remaining"] is None
    assert entry["projected_spending"] is None
    assert entry["category"] is None


def test_empty_household_reports_zero_counts():
    report = evaluate_budget_health([], NOW)

    assert report["summary"]["total"] == 0
    assert report["grouped"] == {"ON_TRACK": [], "WARNING": [], "OVER_BUDGET": []}


def test_budget_ending_today_is_left_out():
    march = budget("march", 500.0, [100.0], start=date(2024, 3, 1), end=date(2024, 4, 1))
    april = budget("april", 500.0, [], start=date(2024, 4, 1), end=date(2024, 5, 1))

    report = evaluate_budget_health([march, april], datetime(2024, 4, 1, 12))

    assert [entry["id"] for entry in report["budgets"]] == ["april"]
    assert report["summary"]["total"] == 1


def test_zero_length_budget_has_no_projection():
    entry = evaluate_budget_health(
        [budget("oneday", 100.0, [20.0], start=date(2024, 3, 20), end=date(2024, 3, 20))], NOW
    )["budgets"][0]

    assert entry["projected_spending"] is None
