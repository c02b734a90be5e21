from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from homebudget.app.api.v1.deps import get_current_user_id
from homebudget.app.database import get_db_session
from homebudget.app.schemas.budgets import BudgetCreate, BudgetProgressDetail, BudgetUpdate, BudgetWithProgress
from homebudget.app.services.budget_service import (
    create_budget, get_budgets, get_budget, get_primary_budget,
    get_budget_progress, update_budget, delete_budget, rollover_budget
)

router = APIRouter()

@router.post("/", response_model=BudgetWithProgress, status_code=201)
def create_budget_endpoint(
    budget_data: BudgetCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Create a budget, optionally split into category allocations
    """
    return create_budget(db, budget_data, user_id)

@router.get("/", response_model=List[BudgetWithProgress])
def get_budgets_endpoint(
    household_id: str = Query(..., description="ID of the household"),
    active_only: bool = Query(False, description="Only budgets whose end date has not passed"),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Get all budgets of a household with their progress
    """
    return get_budgets(db, household_id, user_id, active_only)

@router.get("/primary", response_model=Optional[BudgetWithProgress])
def get_primary_budget_endpoint(
    household_id: str = Query(..., description="ID of the household"),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Get the household's primary budget, or null when none is set
    """
    return get_primary_budget(db, household_id, user_id)

@router.get("/{budget_id}", response_model=BudgetWithProgress)
def get_budget_endpoint(
    budget_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return get_budget(db, budget_id, user_id)

@router.get("/{budget_id}/progress", response_model=BudgetProgressDetail)
def get_budget_progress_endpoint(
    budget_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Get progress, spending per category and the spending trend of a budget
    """
    return get_budget_progress(db, budget_id, user_id)

@router.patch("/{budget_id}", response_model=BudgetWithProgress)
def update_budget_endpoint(
    budget_id: str,
    budget_update: BudgetUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Update an existing budget
    """
    return update_budget(db, budget_id, budget_update, user_id)

@router.delete("/{budget_id}", response_model=Dict[str, bool])
def delete_budget_endpoint(
    budget_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Delete a budget
    """
    return delete_budget(db, budget_id, user_id)

@router.post("/{budget_id}/rollover", response_model=BudgetWithProgress, status_code=201)
def rollover_budget_endpoint(
    budget_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Start the next period of a budget with the same amount and allocations
    """
    return rollover_budget(db, budget_id, user_id)
