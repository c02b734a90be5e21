import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homebudget.app.errors import NotFoundError, ValidationFailedError
from homebudget.app.models.models import (
    Budget, Category, Expense, ExpenseType, RecurrenceFrequency, RecurringExpense
)
from homebudget.app.schemas.recurring_expenses import RecurringExpenseCreate, RecurringExpenseUpdate
from homebudget.app.services import realtime
from homebudget.app.services.authorization import (
    WRITE_ROLES, member_household_ids, require_expense_mutation, require_household_role, require_visible
)
from homebudget.app.services.expense_service import serialize_expense
from homebudget.app.services.schedule import calculate_initial_next_run, calculate_next_run

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = {"frequency", "day_of_week", "day_of_month", "month_of_year", "start_date"}

# --- HELPERS ---

def validate_schedule(
    frequency: RecurrenceFrequency,
    day_of_week: Optional[int],
    day_of_month: Optional[int],
    month_of_year: Optional[int]
) -> None:
    if frequency in (RecurrenceFrequency.WEEKLY, RecurrenceFrequency.BIWEEKLY) and day_of_week is None:
        raise ValidationFailedError("day_of_week is required for weekly and biweekly schedules")
    if frequency == RecurrenceFrequency.MONTHLY and day_of_month is None:
        raise ValidationFailedError("day_of_month is required for monthly schedules")
    if frequency == RecurrenceFrequency.YEARLY and (day_of_month is None or month_of_year is None):
        raise ValidationFailedError("day_of_month and month_of_year are required for yearly schedules")

def _check_references(db: Session, household_id: str, category_id: Optional[str], budget_id: Optional[str]) -> None:
    if category_id:
        category = db.query(Category).filter(
            Category.id == category_id,
            Category.household_id == household_id
        ).first()
        if not category:
            raise NotFoundError("Category not found")
    if budget_id:
        budget = db.query(Budget).filter(Budget.id == budget_id, Budget.household_id == household_id).first()
        if not budget:
            raise NotFoundError("Budget not found")

def _get_recurring(db: Session, recurring_id: str, user_id: str) -> RecurringExpense:
    recurring = db.query(RecurringExpense).filter(RecurringExpense.id == recurring_id).first()
    require_visible(db, recurring, user_id, "Recurring expense not found")
    return recurring

# --- CRUD ---

def create_recurring_expense(
    db: Session,
    recurring_data: RecurringExpenseCreate,
    user_id: str,
    today: Optional[date] = None
) -> RecurringExpense:
    require_household_role(db, recurring_data.household_id, user_id, WRITE_ROLES)
    _check_references(db, recurring_data.household_id, recurring_data.category_id, recurring_data.budget_id)

    today = today or date.today()
    next_run = calculate_initial_next_run(
        recurring_data.start_date,
        today,
        recurring_data.frequency,
        recurring_data.day_of_week,
        recurring_data.day_of_month,
        recurring_data.month_of_year,
    )

    recurring = RecurringExpense(
        household_id=recurring_data.household_id,
        user_id=user_id,
        amount=recurring_data.amount,
        description=recurring_data.description,
        category_id=recurring_data.category_id,
        budget_id=recurring_data.budget_id,
        frequency=recurring_data.frequency,
        day_of_week=recurring_data.day_of_week,
        day_of_month=recurring_data.day_of_month,
        month_of_year=recurring_data.month_of_year,
        start_date=recurring_data.start_date,
        end_date=recurring_data.end_date,
        next_run=next_run,
        is_active=True,
    )
    db.add(recurring)
    db.commit()
    db.refresh(recurring)

    logger.info(f"Recurring expense created: {recurring.id} ({recurring.frequency.value}) next run {recurring.next_run}")
    return recurring

def list_recurring_expenses(
    db: Session,
    household_id: str,
    user_id: str,
    is_active: Optional[bool] = None
) -> List[RecurringExpense]:
    require_household_role(db, household_id, user_id)
    query = db.query(RecurringExpense).filter(RecurringExpense.household_id == household_id)
    if is_active is not None:
        query = query.filter(RecurringExpense.is_active == is_active)
    return query.order_by(RecurringExpense.next_run).all()

def get_recurring_expense(db: Session, recurring_id: str, user_id: str) -> RecurringExpense:
    return _get_recurring(db, recurring_id, user_id)

def update_recurring_expense(
    db: Session,
    recurring_id: str,
    recurring_update: RecurringExpenseUpdate,
    user_id: str,
    today: Optional[date] = None
) -> RecurringExpense:
    """Update a recurring expense; schedule changes recalculate the next run"""
    recurring = _get_recurring(db, recurring_id, user_id)
    require_expense_mutation(db, recurring, user_id)

    update_data = recurring_update.model_dump(exclude_unset=True)
    _check_references(db, recurring.household_id, update_data.get("category_id"), update_data.get("budget_id"))

    for field in ("amount", "frequency", "start_date", "is_active"):
        if field in update_data and update_data[field] is None:
            raise ValidationFailedError(f"{field} cannot be null")

    for key, value in update_data.items():
        setattr(recurring, key, value)

    validate_schedule(recurring.frequency, recurring.day_of_week, recurring.day_of_month, recurring.month_of_year)
    if recurring.end_date is not None and recurring.end_date < recurring.start_date:
        raise ValidationFailedError("end_date must not be before start_date")

    if SCHEDULE_FIELDS & update_data.keys():
        recurring.next_run = calculate_initial_next_run(
            recurring.start_date,
            today or date.today(),
            recurring.frequency,
            recurring.day_of_week,
            recurring.day_of_month,
            recurring.month_of_year,
        )

    db.commit()
    db.refresh(recurring)

    logger.info(f"Recurring expense updated: {recurring.id} by user {user_id}")
    return recurring

def delete_recurring_expense(db: Session, recurring_id: str, user_id: str) -> Dict[str, bool]:
    """Delete a definition; expenses it already generated are kept"""
    recurring = _get_recurring(db, recurring_id, user_id)
    require_expense_mutation(db, recurring, user_id)

    db.query(Expense).filter(Expense.recurring_id == recurring.id).update(
        {Expense.recurring_id: None}, synchronize_session=False
    )
    db.delete(recurring)
    db.commit()

    logger.info(f"Recurring expense deleted: {recurring_id} by user {user_id}")
    return {"success": True}

def toggle_recurring_expense(
    db: Session,
    recurring_id: str,
    user_id: str,
    today: Optional[date] = None
) -> RecurringExpense:
    """Pause or resume a definition; resuming skips occurrences missed while paused"""
    recurring = _get_recurring(db, recurring_id, user_id)
    require_expense_mutation(db, recurring, user_id)

    recurring.is_active = not recurring.is_active
    today = today or date.today()
    if recurring.is_active and recurring.next_run < today:
        recurring.next_run = calculate_initial_next_run(
            recurring.start_date,
            today,
            recurring.frequency,
            recurring.day_of_week,
            recurring.day_of_month,
            recurring.month_of_year,
        )

    db.commit()
    db.refresh(recurring)

    state = "activated" if recurring.is_active else "paused"
    logger.info(f"Recurring expense {state}: {recurring.id} by user {user_id}")
    return recurring

# --- GENERATION ---

def _materialize(db: Session, recurring: RecurringExpense, today: date) -> List[Expense]:
    """Create one expense per due occurrence and advance the schedule"""
    created = []
    while recurring.next_run <= today and (recurring.end_date is None or recurring.next_run <= recurring.end_date):
        expense = Expense(
            household_id=recurring.household_id,
            user_id=recurring.user_id,
            amount=recurring.amount,
            type=ExpenseType.EXPENSE,
            description=recurring.description,
            date=recurring.next_run,
            budget_id=recurring.budget_id,
            category_id=recurring.category_id,
            is_recurring=True,
            recurring_id=recurring.id,
            tags=[],
            attachments=[],
        )
        db.add(expense)
        created.append(expense)

        recurring.last_run = recurring.next_run
        recurring.next_run = calculate_next_run(
            recurring.next_run,
            recurring.frequency,
            recurring.day_of_week,
            recurring.day_of_month,
            recurring.month_of_year,
        )
    db.flush()
    return created

def generate_recurring_expenses(db: Session, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Materialize every due occurrence of the active recurring expenses in the
    caller's households.

    Each definition is processed in its own savepoint, so one failing
    definition does not prevent the others from being generated.

    Returns:
        Dict with the number of generated expenses, the expenses themselves
        and one error entry per failed definition
    """
    today = today or date.today()
    household_ids = member_household_ids(db, user_id)
    if not household_ids:
        return {"generated": 0, "expenses": [], "errors": []}

    due = db.query(RecurringExpense).filter(
        RecurringExpense.household_id.in_(household_ids),
        RecurringExpense.is_active == True,
        RecurringExpense.next_run <= today
    ).order_by(RecurringExpense.next_run).all()

    generated: List[Expense] = []
    errors: List[Dict[str, str]] = []

    for recurring in due:
        recurring_id = recurring.id
        try:
            with db.begin_nested():
                created = _materialize(db, recurring, today)
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Failed to generate expense from recurring {recurring_id}: {e}")
            errors.append({"recurring_expense_id": recurring_id, "error": str(e)})
            continue
        generated.extend(created)
        for expense in created:
            logger.info(f"Generated expense {expense.id} from recurring expense {recurring_id}")

    db.commit()

    results = []
    for expense in generated:
        db.refresh(expense)
        results.append(serialize_expense(expense))
    for result in results:
        realtime.broadcast_expense_created(result["household_id"], result)

    return {"generated": len(results), "expenses": results, "errors": errors}
