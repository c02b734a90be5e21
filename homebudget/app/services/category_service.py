import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from homebudget.app.errors import ConflictError, NotFoundError, ValidationFailedError
from homebudget.app.models.models import Budget, BudgetCategory, Category, Expense, RecurringExpense
from homebudget.app.schemas.categories import CategoryCreate, CategoryUpdate
from homebudget.app.services.authorization import ADMIN_ROLES, require_household_role, require_visible

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"name": "Groceries", "icon": "🛒", "color": "#10b981"},
    {"name": "Utilities", "icon": "⚡", "color": "#f59e0b"},
    {"name": "Entertainment", "icon": "🎬", "color": "#8b5cf6"},
    {"name": "Transportation", "icon": "🚗", "color": "#3b82f6"},
    {"name": "Healthcare", "icon": "🏥", "color": "#ef4444"},
    {"name": "Housing", "icon": "🏠", "color": "#6366f1"},
    {"name": "Dining", "icon": "🍽️", "color": "#ec4899"},
    {"name": "Other", "icon": "📦", "color": "#6b7280"},
]

def get_default_categories() -> List[Dict[str, str]]:
    return [dict(category) for category in DEFAULT_CATEGORIES]

def seed_default_categories(db: Session, household_id: str) -> List[Category]:
    """Add the default categories to a household without committing"""
    categories = [Category(household_id=household_id, **category) for category in DEFAULT_CATEGORIES]
    db.add_all(categories)
    db.flush()
    return categories

def seed_categories(db: Session, household_id: str, user_id: str) -> List[Category]:
    """Seed defaults into a household that has no categories yet"""
    require_household_role(db, household_id, user_id, ADMIN_ROLES)

    existing = db.query(Category).filter(Category.household_id == household_id).count()
    if existing:
        raise ConflictError("Household already has categories")

    categories = seed_default_categories(db, household_id)
    db.commit()
    for category in categories:
        db.refresh(category)

    logger.info(f"Seeded {len(categories)} default categories for household {household_id}")
    return categories

def get_categories(db: Session, household_id: str, user_id: str) -> List[Category]:
    """Get all categories of a household"""
    require_household_role(db, household_id, user_id)
    return db.query(Category).filter(Category.household_id == household_id).order_by(Category.name).all()

def get_category_by_id(db: Session, category_id: str, user_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    require_visible(db, category, user_id, f"Category with id {category_id} not found")
    return category

def _check_parent(db: Session, household_id: str, parent_id: str) -> Category:
    parent = db.query(Category).filter(
        Category.id == parent_id,
        Category.household_id == household_id
    ).first()
    if not parent:
        raise NotFoundError(f"Parent category with id {parent_id} not found")
    return parent

def create_category(db: Session, category_data: CategoryCreate, user_id: str) -> Category:
    """Service function to create a new category"""
    require_household_role(db, category_data.household_id, user_id, ADMIN_ROLES)

    if category_data.parent_id:
        _check_parent(db, category_data.household_id, category_data.parent_id)

    new_category = Category(
        household_id=category_data.household_id,
        name=category_data.name,
        icon=category_data.icon,
        color=category_data.color,
        parent_id=category_data.parent_id,
    )
    db.add(new_category)
    db.commit()
    db.refresh(new_category)

    logger.info(f"Category created: {new_category.id} ({new_category.name}) in household {new_category.household_id}")
    return new_category

def update_category(db: Session, category_id: str, category_update: CategoryUpdate, user_id: str) -> Category:
    category = get_category_by_id(db, category_id, user_id)
    require_household_role(db, category.household_id, user_id, ADMIN_ROLES)

    update_data = category_update.model_dump(exclude_unset=True)

    if update_data.get("parent_id"):
        if update_data["parent_id"] == category.id:
            raise ValidationFailedError("Category cannot be its own parent")
        _check_parent(db, category.household_id, update_data["parent_id"])

    for key, value in update_data.items():
        setattr(category, key, value)

    db.commit()
    db.refresh(category)
    logger.info(f"Category updated: {category.id}")
    return category

def _usage_counts(db: Session, category_id: str) -> Dict[str, int]:
    return {
        "expenses": db.query(Expense).filter(Expense.category_id == category_id).count(),
        "budgets": db.query(Budget).filter(Budget.category_id == category_id).count(),
        "allocations": db.query(BudgetCategory).filter(BudgetCategory.category_id == category_id).count(),
        "recurring_expenses": db.query(RecurringExpense).filter(RecurringExpense.category_id == category_id).count(),
    }

def delete_category(db: Session, category_id: str, user_id: str, force: bool = False) -> Dict[str, Any]:
    """
    Delete a category.

    A category with subcategories is never deleted. A category still
    referenced by expenses, budgets or recurring expenses is only deleted
    with ``force``, which clears those references first.
    """
    category = get_category_by_id(db, category_id, user_id)
    require_household_role(db, category.household_id, user_id, ADMIN_ROLES)

    if db.query(Category).filter(Category.parent_id == category.id).count():
        raise ConflictError("Cannot delete category with subcategories")

    usage = _usage_counts(db, category.id)
    if any(usage.values()) and not force:
        raise ConflictError("Category is in use", details={"usage": usage})

    if force:
        db.query(Expense).filter(Expense.category_id == category.id).update(
            {Expense.category_id: None}, synchronize_session=False
        )
        db.query(Budget).filter(Budget.category_id == category.id).update(
            {Budget.category_id: None}, synchronize_session=False
        )
        db.query(RecurringExpense).filter(RecurringExpense.category_id == category.id).update(
            {RecurringExpense.category_id: None}, synchronize_session=False
        )
        db.query(BudgetCategory).filter(BudgetCategory.category_id == category.id).delete(synchronize_session=False)

    db.delete(category)
    db.commit()

    logger.info(f"Category deleted: {category_id} (force={force})")
    return {"success": True, "usage": usage}
