import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from homebudget.app.errors import ConflictError, NotFoundError, ValidationFailedError
from homebudget.app.models.models import (
    Budget, BudgetCategory, BudgetPeriod, Category, Expense, Household, RecurringExpense
)
from homebudget.app.schemas.budgets import AllocationIn, BudgetCreate, BudgetInDB, BudgetUpdate
from homebudget.app.services import realtime
from homebudget.app.services.authorization import ADMIN_ROLES, require_household_role, require_visible
from homebudget.app.services.dashboard_aggregator import UNCATEGORIZED_NAME, days_between
from homebudget.app.services.progress import calculate_progress, is_spend, percentage_of, round2
from homebudget.app.services.schedule import period_end_date

logger = logging.getLogger(__name__)

# --- HELPERS ---

def resolve_end_date(period: BudgetPeriod, start_date: date, end_date: Optional[date] = None) -> date:
    """An explicit end date wins; otherwise it is derived from the period"""
    if end_date is None:
        end_date = period_end_date(start_date, period)
        if end_date is None:
            raise ValidationFailedError("end_date is required for CUSTOM budgets")
    if end_date < start_date:
        raise ValidationFailedError("end_date must not be before start_date")
    return end_date

def _check_category(db: Session, household_id: str, category_id: str) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.household_id == household_id
    ).first()
    if not category:
        raise NotFoundError(f"Category with id {category_id} not found")
    return category

def _check_allocations(db: Session, household_id: str, amount: float, allocations: List[AllocationIn]) -> None:
    """Allocations must use distinct household categories and fit inside the budget amount"""
    seen = set()
    for allocation in allocations:
        if allocation.category_id in seen:
            raise ValidationFailedError(f"Category {allocation.category_id} is allocated more than once")
        seen.add(allocation.category_id)
        _check_category(db, household_id, allocation.category_id)

    allocated = round2(sum(allocation.allocated_amount for allocation in allocations))
    if allocated > round2(amount):
        raise ConflictError(
            "Total allocated amount exceeds budget amount",
            details={"allocated": allocated, "amount": amount},
        )

def _build_allocations(allocations: List[AllocationIn]) -> List[BudgetCategory]:
    return [
        BudgetCategory(
            category_id=allocation.category_id,
            allocated_amount=allocation.allocated_amount,
            position=position,
        )
        for position, allocation in enumerate(allocations)
    ]

def _get_budget(db: Session, budget_id: str, user_id: str) -> Budget:
    budget = db.query(Budget).filter(Budget.id == budget_id).first()
    require_visible(db, budget, user_id, "Budget not found")
    return budget

def serialize_budget(budget: Budget) -> Dict[str, Any]:
    return BudgetInDB.model_validate(budget).model_dump()

def budget_with_progress(budget: Budget) -> Dict[str, Any]:
    data = serialize_budget(budget)
    data["progress"] = calculate_progress(budget.amount, budget.expenses).to_dict()
    data["expense_count"] = len(budget.expenses)
    return data

# --- CRUD ---

def create_budget(db: Session, budget_data: BudgetCreate, user_id: str) -> Dict[str, Any]:
    """Create a budget and its category allocations in one transaction"""
    require_household_role(db, budget_data.household_id, user_id, ADMIN_ROLES)

    end_date = resolve_end_date(budget_data.period, budget_data.start_date, budget_data.end_date)
    if budget_data.category_id:
        _check_category(db, budget_data.household_id, budget_data.category_id)
    _check_allocations(db, budget_data.household_id, budget_data.amount, budget_data.allocations)

    db_budget = Budget(
        household_id=budget_data.household_id,
        name=budget_data.name,
        amount=budget_data.amount,
        period=budget_data.period,
        start_date=budget_data.start_date,
        end_date=end_date,
        category_id=budget_data.category_id,
    )
    db_budget.allocations = _build_allocations(budget_data.allocations)
    db.add(db_budget)
    db.commit()
    db.refresh(db_budget)

    logger.info(f"Budget created: {db_budget.id} in household {db_budget.household_id} by user {user_id}")

    result = budget_with_progress(db_budget)
    realtime.broadcast_budget_updated(db_budget.household_id, result, action="created")
    return result

def get_budgets(db: Session, household_id: str, user_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    """Get all budgets of a household, each with its progress"""
    require_household_role(db, household_id, user_id)

    query = db.query(Budget).filter(Budget.household_id == household_id)
    if active_only:
        today = date.today()
        query = query.filter((Budget.end_date == None) | (Budget.end_date > today))

    budgets = query.order_by(Budget.start_date.desc()).all()
    return [budget_with_progress(budget) for budget in budgets]

def get_budget(db: Session, budget_id: str, user_id: str) -> Dict[str, Any]:
    budget = _get_budget(db, budget_id, user_id)
    return budget_with_progress(budget)

def get_primary_budget(db: Session, household_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    """The household's primary budget with progress, or None when unset"""
    require_household_role(db, household_id, user_id)

    household = db.query(Household).filter(Household.id == household_id).first()
    if not household or not household.primary_budget_id:
        return None

    budget = db.query(Budget).filter(
        Budget.id == household.primary_budget_id,
        Budget.household_id == household_id
    ).first()
    return budget_with_progress(budget) if budget else None

def update_budget(db: Session, budget_id: str, budget_update: BudgetUpdate, user_id: str) -> Dict[str, Any]:
    """Update an existing budget; a given allocation list replaces the current one"""
    budget = _get_budget(db, budget_id, user_id)
    require_household_role(db, budget.household_id, user_id, ADMIN_ROLES)

    update_data = budget_update.model_dump(exclude_unset=True, exclude={"allocations"})

    if update_data.get("category_id"):
        _check_category(db, budget.household_id, update_data["category_id"])

    amount = update_data.get("amount") or budget.amount
    if budget_update.allocations is not None:
        _check_allocations(db, budget.household_id, amount, budget_update.allocations)
    else:
        allocated = round2(sum(allocation.allocated_amount for allocation in budget.allocations))
        if allocated > round2(amount):
            raise ConflictError(
                "Total allocated amount exceeds budget amount",
                details={"allocated": allocated, "amount": amount},
            )

    if {"period", "start_date", "end_date"} & update_data.keys():
        period = update_data.get("period", budget.period)
        start_date = update_data.get("start_date", budget.start_date)
        if "end_date" in update_data:
            end_date = update_data["end_date"]
        elif period == BudgetPeriod.CUSTOM:
            end_date = budget.end_date
        else:
            end_date = None
        update_data["end_date"] = resolve_end_date(period, start_date, end_date)

    for key, value in update_data.items():
        setattr(budget, key, value)

    if budget_update.allocations is not None:
        budget.allocations.clear()
        db.flush()
        budget.allocations.extend(_build_allocations(budget_update.allocations))

    db.commit()
    db.refresh(budget)

    logger.info(f"Budget updated: {budget.id} by user {user_id}")

    result = budget_with_progress(budget)
    realtime.broadcast_budget_updated(budget.household_id, result, action="updated")
    return result

def delete_budget(db: Session, budget_id: str, user_id: str) -> Dict[str, bool]:
    """Delete a budget; its expenses and recurring expenses are kept but unlinked"""
    budget = _get_budget(db, budget_id, user_id)
    require_household_role(db, budget.household_id, user_id, ADMIN_ROLES)

    household_id = budget.household_id

    db.query(Expense).filter(Expense.budget_id == budget.id).update(
        {Expense.budget_id: None}, synchronize_session=False
    )
    db.query(RecurringExpense).filter(RecurringExpense.budget_id == budget.id).update(
        {RecurringExpense.budget_id: None}, synchronize_session=False
    )
    db.query(Household).filter(Household.primary_budget_id == budget.id).update(
        {Household.primary_budget_id: None}, synchronize_session=False
    )
    db.expire(budget, ["expenses"])

    db.delete(budget)
    db.commit()

    logger.info(f"Budget deleted: {budget_id} by user {user_id}")

    realtime.broadcast_budget_updated(household_id, {"id": budget_id}, action="deleted")
    return {"success": True}

# --- PROGRESS & ROLLOVER ---

def get_budget_progress(db: Session, budget_id: str, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Detailed progress for one budget.

    Returns:
        Dict with the budget, its progress, spending per category name and
        a daily spending trend with a projection to the end of the period
    """
    budget = _get_budget(db, budget_id, user_id)

    now = now or datetime.now()
    progress = calculate_progress(budget.amount, budget.expenses)

    category_breakdown: Dict[str, Dict[str, Any]] = {}
    for expense in budget.expenses:
        if not is_spend(expense):
            continue
        name = expense.category.name if expense.category is not None else UNCATEGORIZED_NAME
        bucket = category_breakdown.setdefault(name, {"total": 0.0, "count": 0, "percentage": 0.0})
        bucket["total"] += expense.amount
        bucket["count"] += 1

    for bucket in category_breakdown.values():
        bucket["percentage"] = percentage_of(bucket["total"], progress.total_spent)
        bucket["total"] = round2(bucket["total"])

    start = datetime.combine(budget.start_date, time.min)
    end = datetime.combine(budget.end_date, time.min) if budget.end_date else now
    days_elapsed = max(1, days_between(start, now))
    total_days = max(1, days_between(start, end))
    daily_spent = progress.total_spent / days_elapsed

    return {
        "budget": serialize_budget(budget),
        "progress": progress.to_dict(),
        "category_breakdown": category_breakdown,
        "trend": {
            "days_elapsed": days_elapsed,
            "total_days": total_days,
            "daily_budget": round2(budget.amount / total_days),
            "daily_spent": round2(daily_spent),
            "projected_total": round2(daily_spent * total_days),
        },
    }

def rollover_budget(db: Session, budget_id: str, user_id: str) -> Dict[str, Any]:
    """Create the next period's budget with the same settings and allocations"""
    budget = _get_budget(db, budget_id, user_id)
    require_household_role(db, budget.household_id, user_id, ADMIN_ROLES)

    new_start = budget.end_date or date.today()
    if budget.period == BudgetPeriod.CUSTOM:
        length = (budget.end_date - budget.start_date) if budget.end_date else None
        if length is None:
            raise ValidationFailedError("CUSTOM budgets without an end date cannot be rolled over")
        new_end = new_start + length
    else:
        new_end = period_end_date(new_start, budget.period)

    new_budget = Budget(
        household_id=budget.household_id,
        name=budget.name,
        amount=budget.amount,
        period=budget.period,
        start_date=new_start,
        end_date=new_end,
        category_id=budget.category_id,
    )
    new_budget.allocations = [
        BudgetCategory(
            category_id=allocation.category_id,
            allocated_amount=allocation.allocated_amount,
            position=allocation.position,
        )
        for allocation in budget.allocations
    ]
    db.add(new_budget)
    db.commit()
    db.refresh(new_budget)

    logger.info(f"Budget rolled over: {budget.id} -> {new_budget.id} by user {user_id}")

    result = budget_with_progress(new_budget)
    realtime.broadcast_budget_updated(new_budget.household_id, result, action="created")
    return result
