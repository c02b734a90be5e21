import pytest
from types import SimpleNamespace

from homebudget.app.models.models import BudgetHealthStatus, ExpenseType
from homebudget.app.services.progress import calculate_progress, health_status, percentage_of, round2


def item(amount, type=ExpenseType.EXPENSE):
    return SimpleNamespace(amount=amount, type=type)


def test_progress_on_track():
    """$500 budget with $320.50 spent"""
    progress = calculate_progress(500.0, [item(120.25), item(200.25)])

    assert progress.total_spent == 320.50
    assert progress.remaining == 179.50
    assert progress.percentage == 64.1
    assert progress.status == BudgetHealthStatus.ON_TRACK


def test_progress_ninety_percent_is_over_budget():
    progress = calculate_progress(200.0, [item(180.0)])

    assert progress.percentage == 90.0
    assert progress.status == BudgetHealthStatus.OVER_BUDGET


def test_progress_zero_amount_guards_division():
    progress = calculate_progress(0.0, [item(25.0)])

    assert progress.percentage == 0
    assert progress.status == BudgetHealthStatus.ON_TRACK
    assert progress.remaining == -25.0


def test_progress_ignores_income_and_transfers():
    progress = calculate_progress(100.0, [
        item(40.0),
        item(1000.0, ExpenseType.INCOME),
        item(30.0, ExpenseType.TRANSFER),
    ])

    assert progress.total_spent == 40.0
    assert progress.percentage == 40.0


def test_progress_overspent_has_negative_remaining():
    progress = calculate_progress(100.0, [item(150.0)])

    assert progress.remaining == -50.0
    assert progress.percentage == 150.0
    assert progress.status == BudgetHealthStatus.OVER_BUDGET


def test_remaining_plus_spent_equals_amount():
    amounts = [19.99, 5.01, 0.333, 74.25]
    progress = calculate_progress(250.0, [item(amount) for amount in amounts])

    assert abs(progress.remaining + progress.total_spent - 250.0) <= 0.01


@pytest.mark.parametrize("percentage, expected", [
    (0.0, BudgetHealthStatus.ON_TRACK),
    (69.99, BudgetHealthStatus.ON_TRACK),
    (70.0, BudgetHealthStatus.WARNING),
    (89.99, BudgetHealthStatus.WARNING),
    (90.0, BudgetHealthStatus.OVER_BUDGET),
    (250.0, BudgetHealthStatus.OVER_BUDGET),
])
def test_health_status_thresholds(percentage, expected):
    assert health_status(percentage) == expected


def test_status_uses_rounded_percentage():
    # 69.996% rounds to 70.00%
    progress = calculate_progress(100000.0, [item(69996.0)])

    assert progress.percentage == 70.0
    assert progress.status == BudgetHealthStatus.WARNING


def test_round2_is_half_up():
    assert round2(2.675) == 2.68
    assert round2(1.005) == 1.01
    assert round2(-1.005) == -1.01


def test_percentage_of_non_positive_whole():
    assert percentage_of(10.0, 0) == 0.0
    assert percentage_of(10.0, -5.0) == 0.0


def test_progress_to_dict_serializes_status():
    data = calculate_progress(100.0, [item(75.0)]).to_dict()

    assert data == {"total_spent": 75.0, "remaining": 25.0, "percentage": 75.0, "status": "WARNING"}
