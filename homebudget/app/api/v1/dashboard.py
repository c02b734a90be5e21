from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from homebudget.app.api.v1.deps import get_current_user_id, get_dashboard_cache
from homebudget.app.database import get_db_session
from homebudget.app.schemas.dashboard import BudgetHealthReport, HouseholdOverview, MonthlySummary
from homebudget.app.services import dashboard_service
from homebudget.app.services.cache import TTLCache

router = APIRouter()

@router.get("/monthly", response_model=MonthlySummary)
def get_monthly_summary_endpoint(
    household_id: str = Query(..., description="ID of the household"),
    month: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    budget_id: Optional[str] = Query(None, description="Defaults to the household's primary budget"),
    start_date: Optional[date] = Query(None, description="Custom range start, overrides month"),
    end_date: Optional[date] = Query(None, description="Custom range end, overrides month"),
    db: Session = Depends(get_db_session),
    cache: TTLCache = Depends(get_dashboard_cache),
    user_id: str = Depends(get_current_user_id)
):
    """
    Spending summary for one month: totals, category breakdown, member
    contributions, daily and weekly trends and a projection
    """
    return dashboard_service.get_monthly_summary(
        db, cache, household_id, user_id,
        month=month, budget_id=budget_id, start_date=start_date, end_date=end_date
    )

@router.get("/household/{household_id}", response_model=HouseholdOverview)
def get_household_overview_endpoint(
    household_id: str,
    db: Session = Depends(get_db_session),
    cache: TTLCache = Depends(get_dashboard_cache),
    user_id: str = Depends(get_current_user_id)
):
    """
    Members, counts, recent activity and this month's totals
    """
    return dashboard_service.get_household_overview(db, cache, household_id, user_id)

@router.get("/budget-health", response_model=BudgetHealthReport)
def get_budget_health_endpoint(
    household_id: str = Query(..., description="ID of the household"),
    db: Session = Depends(get_db_session),
    cache: TTLCache = Depends(get_dashboard_cache),
    user_id: str = Depends(get_current_user_id)
):
    """
    Health status of every active budget
    """
    return dashboard_service.get_budget_health(db, cache, household_id, user_id)
