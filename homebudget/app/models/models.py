from uuid import uuid4
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, DateTime, Float, Boolean, ForeignKey, Enum as PgEnum, JSON, Date, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# --- ENUMS ---

class HouseholdRole(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"

class BudgetPeriod(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"

class ExpenseType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"

class RecurrenceFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

class BudgetHealthStatus(str, Enum):
    """Derived spending status of a budget; never persisted"""
    ON_TRACK = "ON_TRACK"
    WARNING = "WARNING"
    OVER_BUDGET = "OVER_BUDGET"

# --- SQLALCHEMY MODELS ---

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    memberships = relationship("HouseholdMember", back_populates="user", cascade="all, delete-orphan")

class Household(Base):
    __tablename__ = "households"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    name = Column(String, nullable=False)
    owner_id = Column(String, ForeignKey("users.id"), nullable=False)
    # Plain reference: households and budgets point at each other
    primary_budget_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User")
    members = relationship("HouseholdMember", back_populates="household", cascade="all, delete-orphan")
    categories = relationship("Category", back_populates="household", cascade="all, delete-orphan")
    budgets = relationship("Budget", back_populates="household", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="household", cascade="all, delete-orphan")
    recurring_expenses = relationship("RecurringExpense", back_populates="household", cascade="all, delete-orphan")
    invitations = relationship("Invitation", back_populates="household", cascade="all, delete-orphan")

class HouseholdMember(Base):
    __tablename__ = "household_members"
    __table_args__ = (
        UniqueConstraint("household_id", "user_id", name="uq_household_member"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    household_id = Column(String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(PgEnum(HouseholdRole), nullable=False, default=HouseholdRole.MEMBER)
    joined_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    household = relationship("Household", back_populates="members")
    user = relationship("User", back_populates="memberships")

class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    household_id = Column(String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    parent_id = Column(String, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    household = relationship("Household", back_populates="categories")
    parent = relationship("Category", remote_side=[id], backref="children")
    expenses = relationship("Expense", back_populates="category")

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    household_id = Column(String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    period = Column(PgEnum(BudgetPeriod), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    category_id = Column(String, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    household = relationship("Household", back_populates="budgets")
    category = relationship("Category")
    allocations = relationship(
        "BudgetCategory",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="BudgetCategory.position",
    )
    expenses = relationship("Expense", back_populates="budget")

class BudgetCategory(Base):
    """A slice of a budget's amount allocated to one category"""
    __tablename__ = "budget_categories"
    __table_args__ = (
        UniqueConstraint("budget_id", "category_id", name="uq_budget_category"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    budget_id = Column(String, ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False)
    allocated_amount = Column(Float, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    budget = relationship("Budget", back_populates="allocations")
    category = relationship("Category")

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    household_id = Column(String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    amount = Column(Float, nullable=False)
    type = Column(PgEnum(ExpenseType), nullable=False, default=ExpenseType.EXPENSE)
    description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    budget_id = Column(String, ForeignKey("budgets.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    is_recurring = Column(Boolean, default=False)
    recurring_id = Column(String, ForeignKey("recurring_expenses.id", ondelete="SET NULL"), nullable=True)
    tags = Column(JSON, default=list)
    attachments = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    household = relationship("Household", back_populates="expenses")
    user = relationship("User")
    budget = relationship("Budget", back_populates="expenses")
    category = relationship("Category", back_populates="expenses")

class RecurringExpense(Base):
    __tablename__ = "recurring_expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    household_id = Column(String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    budget_id = Column(String, ForeignKey("budgets.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Float, nullable=False)
    description = Column(String, nullable=True)
    frequency = Column(PgEnum(RecurrenceFrequency), nullable=False)
    day_of_week = Column(Integer, nullable=True)  # 0=Monday ... 6=Sunday
    day_of_month = Column(Integer, nullable=True)
    month_of_year = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_run = Column(Date, nullable=False)
    last_run = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    household = relationship("Household", back_populates="recurring_expenses")
    user = relationship("User")
    category = relationship("Category")
    budget = relationship("Budget")

class Invitation(Base):
    """One-time, time-limited invitation to join a household"""
    __tablename__ = "invitations"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    token = Column(String, unique=True, nullable=False)
    household_id = Column(String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, nullable=False)
    role = Column(PgEnum(HouseholdRole), nullable=False, default=HouseholdRole.MEMBER)
    invited_by = Column(String, ForeignKey("users.id"), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    household = relationship("Household", back_populates="invitations")
