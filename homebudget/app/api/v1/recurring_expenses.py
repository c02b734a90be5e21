from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from homebudget.app.api.v1.deps import get_current_user_id
from homebudget.app.database import get_db_session
from homebudget.app.schemas.recurring_expenses import (
    GenerationResult, RecurringExpenseCreate, RecurringExpenseResponse, RecurringExpenseUpdate
)
from homebudget.app.services import recurring_expense_service

router = APIRouter()

@router.post("/generate", response_model=GenerationResult)
def generate_recurring_expenses_endpoint(
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Create the expenses that are due from every active recurring expense in
    the caller's households
    """
    return recurring_expense_service.generate_recurring_expenses(db, user_id)

@router.post("/", response_model=RecurringExpenseResponse, status_code=201)
def create_recurring_expense_endpoint(
    recurring_data: RecurringExpenseCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return recurring_expense_service.create_recurring_expense(db, recurring_data, user_id)

@router.get("/", response_model=List[RecurringExpenseResponse])
def list_recurring_expenses_endpoint(
    household_id: str = Query(..., description="ID of the household"),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return recurring_expense_service.list_recurring_expenses(db, household_id, user_id, is_active)

@router.get("/{recurring_id}", response_model=RecurringExpenseResponse)
def get_recurring_expense_endpoint(
    recurring_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return recurring_expense_service.get_recurring_expense(db, recurring_id, user_id)

@router.patch("/{recurring_id}", response_model=RecurringExpenseResponse)
def update_recurring_expense_endpoint(
    recurring_id: str,
    recurring_update: RecurringExpenseUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Update a recurring expense; schedule changes recalculate the next run
    """
    return recurring_expense_service.update_recurring_expense(db, recurring_id, recurring_update, user_id)

@router.delete("/{recurring_id}", response_model=Dict[str, bool])
def delete_recurring_expense_endpoint(
    recurring_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return recurring_expense_service.delete_recurring_expense(db, recurring_id, user_id)

@router.post("/{recurring_id}/toggle", response_model=RecurringExpenseResponse)
def toggle_recurring_expense_endpoint(
    recurring_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Pause or resume a recurring expense
    """
    return recurring_expense_service.toggle_recurring_expense(db, recurring_id, user_id)
