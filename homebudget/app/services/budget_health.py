"""
Budget health: spending status of every active budget in a household.

End dates are exclusive: a budget has ended on its end date.
"""
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional

from homebudget.app.models.models import BudgetHealthStatus
from homebudget.app.services.progress import calculate_progress, round2
from homebudget.app.services.dashboard_aggregator import days_between


def is_active(budget, today: date) -> bool:
    """A budget is active while its end date is after today, or unset"""
    return budget.end_date is None or budget.end_date > today


def evaluate_budget(budget, now: datetime) -> Dict[str, Any]:
    """Health figures for one budget, based on its EXPENSE line items"""
    progress = calculate_progress(budget.amount, budget.expenses)

    start = datetime.combine(budget.start_date, time.min)
    end: Optional[datetime] = datetime.combine(budget.end_date, time.min) if budget.end_date else None

    days_remaining = max(0, days_between(now, end)) if end is not None else None
    days_elapsed = max(1, days_between(start, now))
    total_days = days_between(start, end) if end is not None else None

    daily_average = progress.total_spent / days_elapsed
    projected_spending = round2(daily_average * total_days) if total_days else None

    return {
        "id": budget.id,
        "name": budget.name,
        "amount": budget.amount,
        "period": budget.period,
        "start_date": budget.start_date,
        "end_date": budget.end_date,
        "category": {
            "id": budget.category.id,
            "name": budget.category.name,
        } if budget.category is not None else None,
        "spent": progress.total_spent,
        "remaining": progress.remaining,
        "percentage": progress.percentage,
        "health_status": progress.status,
        "days_remaining": days_remaining,
        "projected_spending": projected_spending,
    }


def evaluate_budget_health(budgets: Iterable, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Evaluate every active budget and group the results by health status.

    Returns:
        Dict with ``budgets`` (one entry per active budget), ``summary``
        counts and ``grouped`` lists keyed by status
    """
    now = now or datetime.now()
    evaluated: List[Dict[str, Any]] = [
        evaluate_budget(budget, now) for budget in budgets if is_active(budget, now.date())
    ]

    grouped = {status.value: [] for status in BudgetHealthStatus}
    for entry in evaluated:
        grouped[entry["health_status"].value].append(entry)

    return {
        "budgets": evaluated,
        "summary": {
            "total": len(evaluated),
            "on_track": len(grouped[BudgetHealthStatus.ON_TRACK.value]),
            "warning": len(grouped[BudgetHealthStatus.WARNING.value]),
            "over_budget": len(grouped[BudgetHealthStatus.OVER_BUDGET.value]),
        },
        "grouped": grouped,
    }
