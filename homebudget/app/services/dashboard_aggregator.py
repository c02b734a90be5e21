"""
Monthly dashboard aggregation.

Everything in this module is a pure function over already-loaded expense
rows, so it can be exercised without a database. An expense row is anything
exposing ``amount``, ``type``, ``date``, ``budget_id``, ``category_id``,
``category`` (with ``id``/``name``, or None), ``user_id`` and ``user``
(with ``name``/``email``, or None).
"""
import calendar
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional

from homebudget.app.services.progress import round2, percentage_of, is_spend
from homebudget.app.models.models import ExpenseType

UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"
TOP_CATEGORY_COUNT = 5
DAYS_PER_WEEK = 7

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass
class Period:
    start_date: date
    end_date: date
    year: int
    month: int
    days_elapsed: int
    total_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "days_elapsed": self.days_elapsed,
            "total_days": self.total_days,
        }


def parse_month(month: str):
    """Parse a YYYY-MM string into (year, month)"""
    match = MONTH_PATTERN.match(month or "")
    if not match:
        raise ValueError("Month must be in YYYY-MM format")
    year, month_number = int(match.group(1)), int(match.group(2))
    if not 1 <= month_number <= 12:
        raise ValueError("Month must be between 01 and 12")
    return year, month_number


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounded up"""
    return math.ceil((end - start).total_seconds() / 86400)


def resolve_period(
    month: Optional[str] = None,
    now: Optional[datetime] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Period:
    """
    Resolve the reporting window.

    An explicit start/end pair wins; otherwise the YYYY-MM month is used,
    falling back to the month containing ``now``.
    """
    now = now or datetime.now()

    if start_date is not None or end_date is not None:
        if start_date is None or end_date is None:
            raise ValueError("Both start_date and end_date are required for a custom range")
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        start, end = start_date, end_date
    else:
        if month:
            year, month_number = parse_month(month)
        else:
            year, month_number = now.year, now.month
        start = date(year, month_number, 1)
        end = date(year, month_number, calendar.monthrange(year, month_number)[1])

    total_days = (end - start).days + 1
    elapsed = days_between(datetime.combine(start, time.min), now)
    days_elapsed = max(0, min(elapsed, total_days))

    return Period(
        start_date=start,
        end_date=end,
        year=start.year,
        month=start.month,
        days_elapsed=days_elapsed,
        total_days=total_days,
    )


def filter_to_budget(expenses: Iterable, budget) -> List:
    """Keep only rows booked against the selected budget, if there is one"""
    if budget is None:
        return list(expenses)
    return [expense for expense in expenses if expense.budget_id == budget.id]


def sum_of_type(expenses: Iterable, expense_type: ExpenseType) -> float:
    return sum(expense.amount for expense in expenses if expense.type == expense_type)


def build_category_breakdown(expenses: Iterable, total_expenses: float, budget=None) -> Dict[str, List[Dict[str, Any]]]:
    buckets: Dict[str, Dict[str, Any]] = {}
    for expense in expenses:
        if not is_spend(expense):
            continue
        category = expense.category
        category_id = category.id if category is not None else UNCATEGORIZED_ID
        if category_id not in buckets:
            buckets[category_id] = {
                "id": category_id,
                "name": category.name if category is not None else UNCATEGORIZED_NAME,
                "total": 0.0,
                "count": 0,
                "percentage": 0.0,
                "budget_amount": None,
            }
        buckets[category_id]["total"] += expense.amount
        buckets[category_id]["count"] += 1

    if budget is not None:
        for allocation in getattr(budget, "allocations", None) or []:
            if allocation.category_id in buckets:
                buckets[allocation.category_id]["budget_amount"] = allocation.allocated_amount

    for bucket in buckets.values():
        bucket["percentage"] = percentage_of(bucket["total"], total_expenses)
        bucket["total"] = round2(bucket["total"])

    ordered = sorted(buckets.values(), key=lambda bucket: (-bucket["total"], bucket["name"]))
    return {
        "all": ordered,
        "top5": ordered[:TOP_CATEGORY_COUNT],
    }


def build_member_contributions(expenses: Iterable, total_expenses: float) -> List[Dict[str, Any]]:
    members: Dict[str, Dict[str, Any]] = {}
    for expense in expenses:
        if not is_spend(expense):
            continue
        if expense.user_id not in members:
            user = expense.user
            members[expense.user_id] = {
                "user_id": expense.user_id,
                "name": user.name if user is not None else None,
                "email": user.email if user is not None else None,
                "total": 0.0,
                "percentage": 0.0,
            }
        members[expense.user_id]["total"] += expense.amount

    for member in members.values():
        member["percentage"] = percentage_of(member["total"], total_expenses)
        member["total"] = round2(member["total"])

    return sorted(members.values(), key=lambda member: -member["total"])


def build_daily_breakdown(expenses: Iterable, start_date: date, end_date: date) -> List[Dict[str, Any]]:
    """One bucket per calendar day in [start_date, end_date], including empty days"""
    daily: Dict[str, float] = {}
    current = start_date
    while current <= end_date:
        daily[current.isoformat()] = 0.0
        current += timedelta(days=1)

    for expense in expenses:
        if not is_spend(expense):
            continue
        key = expense.date.isoformat()
        if key in daily:
            daily[key] += expense.amount

    return [{"date": day, "total": round2(total)} for day, total in daily.items()]


def build_week_over_week(daily_breakdown: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Roll the daily series into consecutive 7-day windows; the last may be shorter"""
    weeks = []
    for offset in range(0, len(daily_breakdown), DAYS_PER_WEEK):
        window = daily_breakdown[offset:offset + DAYS_PER_WEEK]
        weeks.append({
            "week_number": len(weeks) + 1,
            "total": round2(sum(day["total"] for day in window)),
            "days": len(window),
        })
    return weeks


def project_spending(total_spent: float, days_elapsed: int, total_days: int) -> float:
    daily_average = total_spent / max(1, days_elapsed)
    return round2(daily_average * total_days)


def summarize_totals(expenses: Iterable, budget=None) -> Dict[str, Any]:
    """Income, spending and budget usage totals for rows already scoped to the budget"""
    expenses = list(expenses)
    total_expenses = sum_of_type(expenses, ExpenseType.EXPENSE)
    total_income = sum_of_type(expenses, ExpenseType.INCOME)
    budget_amount = budget.amount if budget is not None else 0.0
    return {
        "total_expenses": round2(total_expenses),
        "total_income": round2(total_income),
        "net": round2(total_income - total_expenses),
        "total_budget_amount": round2(budget_amount),
        "budget_spent": round2(total_expenses),
        "budget_remaining": round2(budget_amount - total_expenses),
        "budget_usage_percentage": percentage_of(total_expenses, budget_amount),
        "total_transactions": sum(1 for expense in expenses if is_spend(expense)),
    }


def build_monthly_summary(expenses: Iterable, period: Period, budget=None) -> Dict[str, Any]:
    """
    Build the monthly dashboard payload.

    Args:
        expenses: Household expense rows for the period
        period: Resolved reporting window
        budget: Selected budget (explicit or the household's primary), or None
            to report on every expense in the period

    Returns:
        Dict with selected_budget, period, summary, category_breakdown,
        member_contributions and trends
    """
    scoped = filter_to_budget(expenses, budget)

    total_expenses = sum_of_type(scoped, ExpenseType.EXPENSE)
    daily_breakdown = build_daily_breakdown(scoped, period.start_date, period.end_date)

    return {
        "selected_budget": {
            "id": budget.id,
            "name": budget.name,
            "amount": budget.amount,
            "period": budget.period,
        } if budget is not None else None,
        "period": period.to_dict(),
        "summary": summarize_totals(scoped, budget),
        "category_breakdown": build_category_breakdown(scoped, total_expenses, budget),
        "member_contributions": build_member_contributions(scoped, total_expenses),
        "trends": {
            "daily_breakdown": daily_breakdown,
            "week_over_week": build_week_over_week(daily_breakdown),
            "projected_spending": project_spending(total_expenses, period.days_elapsed, period.total_days),
        },
    }
