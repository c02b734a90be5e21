from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import date

from homebudget.app.api.v1.deps import get_current_user_id
from homebudget.app.database import get_db_session
from homebudget.app.models.models import ExpenseType
from homebudget.app.schemas.expenses import (
    ExpenseBulkCreate, ExpenseBulkResult, ExpenseCreate, ExpenseList, ExpenseResponse, ExpenseSummary, ExpenseUpdate
)
from homebudget.app.services import expense_service

router = APIRouter()

@router.post("/", response_model=ExpenseResponse, status_code=201)
def create_expense_endpoint(
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Record an expense, income or transfer
    """
    return expense_service.create_expense(db, expense_data, user_id)

@router.post("/bulk", response_model=ExpenseBulkResult, status_code=201)
def bulk_create_expenses_endpoint(
    bulk_data: ExpenseBulkCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Create between 1 and 100 expenses at once; either all are stored or none
    """
    return expense_service.bulk_create_expenses(db, bulk_data.expenses, user_id)

@router.get("/", response_model=ExpenseList)
def list_expenses_endpoint(
    household_id: Optional[str] = Query(None, description="Limit to one household"),
    budget_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    type: Optional[ExpenseType] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    tags: Optional[str] = Query(None, description="Comma-separated; matches any"),
    limit: int = Query(expense_service.DEFAULT_PAGE_SIZE, ge=1, le=expense_service.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    List expenses, newest first
    """
    tag_list: Optional[List[str]] = None
    if tags:
        tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()]

    return expense_service.list_expenses(
        db,
        user_id,
        household_id=household_id,
        budget_id=budget_id,
        category_id=category_id,
        expense_type=type,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
        tags=tag_list,
        limit=limit,
        offset=offset
    )

@router.get("/summary", response_model=ExpenseSummary)
def get_expense_summary_endpoint(
    household_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    group_by: str = Query("category", description="category, type, month or budget"),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Totals by type plus a grouped breakdown
    """
    return expense_service.get_expense_summary(db, user_id, household_id, start_date, end_date, group_by)

@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense_endpoint(
    expense_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return expense_service.get_expense(db, expense_id, user_id)

@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense_endpoint(
    expense_id: str,
    expense_update: ExpenseUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Update an expense (its creator, or an OWNER/ADMIN of the household)
    """
    return expense_service.update_expense(db, expense_id, expense_update, user_id)

@router.delete("/{expense_id}", response_model=Dict[str, bool])
def delete_expense_endpoint(
    expense_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return expense_service.delete_expense(db, expense_id, user_id)
