import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homebudget.app.errors import InternalError, NotFoundError, ValidationFailedError
from homebudget.app.models.models import Budget, Category, Expense, ExpenseType, RecurringExpense
from homebudget.app.schemas.expenses import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from homebudget.app.services import realtime
from homebudget.app.services.authorization import (
    WRITE_ROLES, member_household_ids, require_expense_mutation, require_household_role, require_visible
)
from homebudget.app.services.dashboard_aggregator import UNCATEGORIZED_NAME
from homebudget.app.services.progress import round2

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200
GROUP_BY_OPTIONS = ("category", "type", "month", "budget")
NO_BUDGET_NAME = "No Budget"

# --- HELPERS ---

def serialize_expense(expense: Expense) -> Dict[str, Any]:
    return ExpenseResponse.model_validate(expense).model_dump()

def _check_references(
    db: Session,
    household_id: str,
    budget_id: Optional[str] = None,
    category_id: Optional[str] = None,
    recurring_id: Optional[str] = None
) -> None:
    """Budget, category and recurring definition must belong to the expense's household"""
    if budget_id:
        budget = db.query(Budget).filter(Budget.id == budget_id, Budget.household_id == household_id).first()
        if not budget:
            raise NotFoundError("Budget not found")
    if category_id:
        category = db.query(Category).filter(
            Category.id == category_id,
            Category.household_id == household_id
        ).first()
        if not category:
            raise NotFoundError("Category not found")
    if recurring_id:
        recurring = db.query(RecurringExpense).filter(
            RecurringExpense.id == recurring_id,
            RecurringExpense.household_id == household_id
        ).first()
        if not recurring:
            raise NotFoundError("Recurring expense not found")

def _build_expense(db: Session, expense_data: ExpenseCreate, user_id: str) -> Expense:
    require_household_role(db, expense_data.household_id, user_id, WRITE_ROLES)
    _check_references(
        db,
        expense_data.household_id,
        expense_data.budget_id,
        expense_data.category_id,
        expense_data.recurring_id,
    )
    return Expense(
        household_id=expense_data.household_id,
        user_id=user_id,
        amount=expense_data.amount,
        type=expense_data.type,
        description=expense_data.description,
        date=expense_data.date or date.today(),
        budget_id=expense_data.budget_id,
        category_id=expense_data.category_id,
        is_recurring=expense_data.is_recurring,
        recurring_id=expense_data.recurring_id,
        tags=list(expense_data.tags),
        attachments=[str(url) for url in expense_data.attachments],
    )

def _get_expense(db: Session, expense_id: str, user_id: str) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    require_visible(db, expense, user_id, "Expense not found")
    return expense

def _scope_households(db: Session, user_id: str, household_id: Optional[str]) -> List[str]:
    if household_id:
        require_household_role(db, household_id, user_id)
        return [household_id]
    return member_household_ids(db, user_id)

# --- CRUD ---

def create_expense(db: Session, expense_data: ExpenseCreate, user_id: str) -> Dict[str, Any]:
    """Record an expense, income or transfer and notify the household"""
    expense = _build_expense(db, expense_data, user_id)
    db.add(expense)
    db.commit()
    db.refresh(expense)

    logger.info(f"Expense created: {expense.id} by user {user_id}")

    result = serialize_expense(expense)
    realtime.broadcast_expense_created(expense.household_id, result)
    return result

def bulk_create_expenses(db: Session, expenses_data: List[ExpenseCreate], user_id: str) -> Dict[str, Any]:
    """Create several expenses in one transaction; either all are stored or none are"""
    expenses = [_build_expense(db, expense_data, user_id) for expense_data in expenses_data]

    try:
        db.add_all(expenses)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Bulk expense creation failed for user {user_id}: {e}")
        raise InternalError("Failed to create expenses")

    results = []
    for expense in expenses:
        db.refresh(expense)
        results.append(serialize_expense(expense))

    logger.info(f"Bulk created {len(results)} expenses by user {user_id}")

    for result in results:
        realtime.broadcast_expense_created(result["household_id"], result)

    return {"expenses": results, "count": len(results)}

def get_expense(db: Session, expense_id: str, user_id: str) -> Expense:
    return _get_expense(db, expense_id, user_id)

def list_expenses(
    db: Session,
    user_id: str,
    household_id: Optional[str] = None,
    budget_id: Optional[str] = None,
    category_id: Optional[str] = None,
    expense_type: Optional[ExpenseType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    tags: Optional[List[str]] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0
) -> Dict[str, Any]:
    """
    List expenses visible to the caller, newest first.

    Without ``household_id`` every household the caller belongs to is
    searched. ``tags`` matches expenses carrying at least one of the tags.
    """
    household_ids = _scope_households(db, user_id, household_id)
    if not household_ids:
        return {"expenses": [], "pagination": {"total": 0, "limit": limit, "offset": offset, "has_more": False}}

    query = db.query(Expense).filter(Expense.household_id.in_(household_ids))

    if budget_id:
        query = query.filter(Expense.budget_id == budget_id)
    if category_id:
        query = query.filter(Expense.category_id == category_id)
    if expense_type:
        query = query.filter(Expense.type == expense_type)
    if start_date:
        query = query.filter(Expense.date >= start_date)
    if end_date:
        query = query.filter(Expense.date <= end_date)
    if min_amount is not None:
        query = query.filter(Expense.amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Expense.amount <= max_amount)

    query = query.order_by(Expense.date.desc(), Expense.created_at.desc())

    if tags:
        # JSON columns have no portable containment operator
        wanted = set(tags)
        matching = [expense for expense in query.all() if wanted & set(expense.tags or [])]
        total = len(matching)
        page = matching[offset:offset + limit]
    else:
        total = query.count()
        page = query.offset(offset).limit(limit).all()

    return {
        "expenses": page,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(page) < total,
        },
    }

def update_expense(db: Session, expense_id: str, expense_update: ExpenseUpdate, user_id: str) -> Dict[str, Any]:
    """Update an expense; only its creator or a household OWNER/ADMIN may do so"""
    expense = _get_expense(db, expense_id, user_id)
    require_expense_mutation(db, expense, user_id)

    update_data = expense_update.model_dump(exclude_unset=True)
    _check_references(
        db,
        expense.household_id,
        update_data.get("budget_id"),
        update_data.get("category_id"),
        update_data.get("recurring_id"),
    )

    if update_data.get("attachments") is not None:
        update_data["attachments"] = [str(url) for url in update_data["attachments"]]
    for field in ("amount", "type", "date", "is_recurring", "tags", "attachments"):
        if field in update_data and update_data[field] is None:
            raise ValidationFailedError(f"{field} cannot be null")

    for key, value in update_data.items():
        setattr(expense, key, value)

    db.commit()
    db.refresh(expense)

    logger.info(f"Expense updated: {expense.id} by user {user_id}")

    result = serialize_expense(expense)
    realtime.broadcast_expense_updated(expense.household_id, result)
    return result

def delete_expense(db: Session, expense_id: str, user_id: str) -> Dict[str, bool]:
    expense = _get_expense(db, expense_id, user_id)
    require_expense_mutation(db, expense, user_id)

    household_id = expense.household_id
    db.delete(expense)
    db.commit()

    logger.info(f"Expense deleted: {expense_id} by user {user_id}")

    realtime.broadcast_expense_deleted(household_id, expense_id)
    return {"success": True}

# --- SUMMARY ---

def _group_key(expense: Expense, group_by: str) -> str:
    if group_by == "category":
        return expense.category.name if expense.category is not None else UNCATEGORIZED_NAME
    if group_by == "type":
        return expense.type.value
    if group_by == "month":
        return f"{expense.date.year}-{expense.date.month:02d}"
    return expense.budget.name if expense.budget is not None else NO_BUDGET_NAME

def _new_group(expense: Expense, group_by: str) -> Dict[str, Any]:
    group: Dict[str, Any] = {"total": 0.0, "count": 0}
    if group_by == "category":
        group["category_id"] = expense.category_id
    elif group_by == "month":
        group["income"] = 0.0
        group["expenses"] = 0.0
    elif group_by == "budget":
        group["budget_id"] = expense.budget_id
        group["budget_amount"] = expense.budget.amount if expense.budget is not None else 0.0
    return group

def get_expense_summary(
    db: Session,
    user_id: str,
    household_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    group_by: str = "category"
) -> Dict[str, Any]:
    """Totals per type plus a breakdown grouped by category, type, month or budget"""
    if group_by not in GROUP_BY_OPTIONS:
        raise ValidationFailedError(
            f"group_by must be one of {', '.join(GROUP_BY_OPTIONS)}",
            details={"group_by": group_by},
        )

    household_ids = _scope_households(db, user_id, household_id)
    query = db.query(Expense).filter(Expense.household_id.in_(household_ids))
    if start_date:
        query = query.filter(Expense.date >= start_date)
    if end_date:
        query = query.filter(Expense.date <= end_date)
    expenses = query.all() if household_ids else []

    totals = {expense_type: 0.0 for expense_type in ExpenseType}
    groups: Dict[str, Dict[str, Any]] = {}
    for expense in expenses:
        totals[expense.type] += expense.amount

        key = _group_key(expense, group_by)
        if key not in groups:
            groups[key] = _new_group(expense, group_by)
        group = groups[key]
        group["total"] += expense.amount
        group["count"] += 1
        if group_by == "month":
            if expense.type == ExpenseType.INCOME:
                group["income"] += expense.amount
            elif expense.type == ExpenseType.EXPENSE:
                group["expenses"] += expense.amount

    for group in groups.values():
        for field in ("total", "income", "expenses"):
            if field in group:
                group[field] = round2(group[field])

    return {
        "summary": {
            "total_income": round2(totals[ExpenseType.INCOME]),
            "total_expenses": round2(totals[ExpenseType.EXPENSE]),
            "total_transfers": round2(totals[ExpenseType.TRANSFER]),
            "net_amount": round2(totals[ExpenseType.INCOME] - totals[ExpenseType.EXPENSE]),
            "transaction_count": len(expenses),
        },
        "grouped_by": group_by,
        "groups": groups,
    }
