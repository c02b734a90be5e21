"""
Dashboard read models.

Every operation authorizes the caller before touching the cache, so a cached
payload is only ever served to members of its household. Cached values are
plain dicts, never ORM instances.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from homebudget.app.errors import NotFoundError, ValidationFailedError
from homebudget.app.models.models import Budget, Category, Expense, Household
from homebudget.app.schemas.expenses import ExpenseResponse
from homebudget.app.services.authorization import require_household_role
from homebudget.app.services.budget_health import evaluate_budget_health
from homebudget.app.services.cache import TTLCache, cached
from homebudget.app.services.dashboard_aggregator import build_monthly_summary, resolve_period, summarize_totals

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


def monthly_cache_key(
    household_id: str,
    month: Optional[str] = None,
    budget_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> str:
    if start_date is not None or end_date is not None:
        window = f"{start_date}_{end_date}"
    else:
        window = month or "current"
    return f"monthly:{household_id}:{window}:{budget_id or 'primary'}"


def _select_budget(db: Session, household: Household, budget_id: Optional[str]) -> Optional[Budget]:
    """Explicit budget first, then the household's primary budget, else none"""
    if budget_id:
        budget = db.query(Budget).filter(Budget.id == budget_id, Budget.household_id == household.id).first()
        if not budget:
            raise NotFoundError("Budget not found")
        return budget
    if household.primary_budget_id:
        return db.query(Budget).filter(
            Budget.id == household.primary_budget_id,
            Budget.household_id == household.id
        ).first()
    return None


def get_monthly_summary(
    db: Session,
    cache: TTLCache,
    household_id: str,
    user_id: str,
    month: Optional[str] = None,
    budget_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Spending summary of a household for one month (or a custom date range).

    Args:
        month: YYYY-MM; defaults to the current month
        budget_id: Report on this budget instead of the household's primary one
        start_date, end_date: Custom range, overriding ``month``
        now: Reference time for elapsed days and projections
    """
    require_household_role(db, household_id, user_id)

    try:
        period = resolve_period(month=month, now=now, start_date=start_date, end_date=end_date)
    except ValueError as e:
        raise ValidationFailedError(str(e))

    def compute() -> Dict[str, Any]:
        household = db.query(Household).filter(Household.id == household_id).first()
        if not household:
            raise NotFoundError("Household not found")

        budget = _select_budget(db, household, budget_id)
        expenses = db.query(Expense).filter(
            Expense.household_id == household_id,
            Expense.date >= period.start_date,
            Expense.date <= period.end_date
        ).all()

        logger.info(f"Computed monthly summary for household {household_id} ({len(expenses)} expenses)")
        return build_monthly_summary(expenses, period, budget)

    return cached(cache, monthly_cache_key(household_id, month, budget_id, start_date, end_date), compute)


def get_budget_health(
    db: Session,
    cache: TTLCache,
    household_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Health of every active budget in the household"""
    require_household_role(db, household_id, user_id)

    def compute() -> Dict[str, Any]:
        budgets = db.query(Budget).filter(Budget.household_id == household_id).order_by(Budget.start_date).all()
        return evaluate_budget_health(budgets, now)

    return cached(cache, f"budget-health:{household_id}", compute)


def get_household_overview(
    db: Session,
    cache: TTLCache,
    household_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_household_role(db, household_id, user_id)

    def compute() -> Dict[str, Any]:
        household = db.query(Household).filter(Household.id == household_id).first()
        if not household:
            raise NotFoundError("Household not found")

        recent = db.query(Expense).filter(Expense.household_id == household_id).order_by(
            Expense.date.desc(), Expense.created_at.desc()
        ).limit(RECENT_ACTIVITY_LIMIT).all()

        period = resolve_period(now=now)
        month_expenses = db.query(Expense).filter(
            Expense.household_id == household_id,
            Expense.date >= period.start_date,
            Expense.date <= period.end_date
        ).all()
        month_totals = summarize_totals(month_expenses)

        return {
            "household": {
                "id": household.id,
                "name": household.name,
                "member_count": len(household.members),
                "members": [
                    {
                        "user_id": member.user_id,
                        "name": member.user.name,
                        "email": member.user.email,
                        "role": member.role,
                    }
                    for member in household.members
                ],
            },
            "stats": {
                "total_budgets": db.query(Budget).filter(Budget.household_id == household_id).count(),
                "total_expenses": db.query(Expense).filter(Expense.household_id == household_id).count(),
                "total_categories": db.query(Category).filter(Category.household_id == household_id).count(),
            },
            "recent_activity": [ExpenseResponse.model_validate(expense).model_dump() for expense in recent],
            "current_month_summary": {
                "total_expenses": month_totals["total_expenses"],
                "total_income": month_totals["total_income"],
                "net": month_totals["net"],
            },
        }

    return cached(cache, f"household:{household_id}:overview", compute)
