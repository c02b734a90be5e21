import os

# The application engine is built from settings at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from datetime import date
from unittest.mock import patch
from uuid import uuid4

from homebudget.app.models.models import (
    Base, User, Household, HouseholdMember, HouseholdRole, Category, Budget, BudgetCategory,
    BudgetPeriod, Expense, ExpenseType, RecurringExpense, Invitation
)
from homebudget.app.database import get_db_session
from homebudget.app.api.v1.deps import get_dashboard_cache
from homebudget.app.services.cache import TTLCache
from homebudget.app.services.realtime import RealtimeBroadcaster
from homebudget.app.main import app

# Use a test database
TEST_DATABASE_URL = "sqlite:///./test.db"

@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    # Teardown - drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(db_engine):
    """Returns a fresh SQLAlchemy session for each test"""
    Session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = Session()

    # Clear out test data from previous run
    for model in (Expense, RecurringExpense, BudgetCategory, Budget, Invitation, Category,
                  HouseholdMember, Household, User):
        session.query(model).delete()
    session.commit()

    yield session
    session.close()

@pytest.fixture(autouse=True)
def silent_realtime():
    """Broadcasting is disabled unless a test patches it in"""
    with patch("homebudget.app.services.realtime.get_broadcaster", return_value=RealtimeBroadcaster(None, None)):
        yield

@pytest.fixture
def dashboard_cache():
    return TTLCache(ttl_seconds=300)

@pytest.fixture
def client(db_session, dashboard_cache):
    """Test client fixture that uses the db_session fixture"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_dashboard_cache] = lambda: dashboard_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

def auth(user):
    return {"X-User-Id": user.id}

@pytest.fixture
def as_user():
    """Headers identifying a user as the caller"""
    return auth

@pytest.fixture
def make_user(db_session):
    def _make_user(email=None, name="Test User"):
        user = User(id=str(uuid4()), email=email or f"{uuid4().hex[:8]}@example.com", name=name)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user

@pytest.fixture
def add_member(db_session):
    def _add_member(household, user, role=HouseholdRole.MEMBER):
        member = HouseholdMember(household_id=household.id, user_id=user.id, role=role)
        db_session.add(member)
        db_session.commit()
        return member
    return _add_member

@pytest.fixture
def make_household(db_session, add_member):
    """Creates a household owned by the given user, without default categories"""
    def _make_household(owner, name="Test Household"):
        household = Household(id=str(uuid4()), name=name, owner_id=owner.id)
        db_session.add(household)
        db_session.commit()
        add_member(household, owner, HouseholdRole.OWNER)
        db_session.refresh(household)
        return household
    return _make_household

@pytest.fixture
def make_category(db_session):
    def _make_category(household, name="Groceries", parent=None):
        category = Category(
            id=str(uuid4()),
            household_id=household.id,
            name=name,
            parent_id=parent.id if parent else None
        )
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category
    return _make_category

@pytest.fixture
def make_budget(db_session):
    def _make_budget(household, amount=500.0, name="Monthly", start_date=None, end_date=None,
                     period=BudgetPeriod.MONTHLY, category=None):
        budget = Budget(
            id=str(uuid4()),
            household_id=household.id,
            name=name,
            amount=amount,
            period=period,
            start_date=start_date or date(2024, 3, 1),
            end_date=end_date,
            category_id=category.id if category else None
        )
        db_session.add(budget)
        db_session.commit()
        db_session.refresh(budget)
        return budget
    return _make_budget

@pytest.fixture
def make_expense(db_session):
    def _make_expense(household, user, amount, expense_date=None, budget=None, category=None,
                      type=ExpenseType.EXPENSE, tags=None, description="Test expense"):
        expense = Expense(
            id=str(uuid4()),
            household_id=household.id,
            user_id=user.id,
            amount=amount,
            type=type,
            description=description,
            date=expense_date or date(2024, 3, 10),
            budget_id=budget.id if budget else None,
            category_id=category.id if category else None,
            tags=tags or [],
            attachments=[]
        )
        db_session.add(expense)
        db_session.commit()
        db_session.refresh(expense)
        return expense
    return _make_expense

@pytest.fixture
def owner(make_user):
    return make_user(email="owner@example.com", name="Olivia Owner")

@pytest.fixture
def household(make_household, owner):
    return make_household(owner)

@pytest.fixture
def outsider(make_user):
    return make_user(email="outsider@example.com", name="Oscar Outsider")
