from typing import Dict, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from homebudget.app.models.models import BudgetPeriod, BudgetHealthStatus
from homebudget.app.schemas.categories import CategorySummary

class AllocationIn(BaseModel):
    category_id: str
    allocated_amount: float = Field(..., gt=0)

class AllocationResponse(BaseModel):
    category_id: str
    allocated_amount: float
    position: int
    category: Optional[CategorySummary] = None

    model_config = ConfigDict(from_attributes=True)

class BudgetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., gt=0)
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date] = None
    category_id: Optional[str] = None

class BudgetCreate(BudgetBase):
    household_id: str
    allocations: List[AllocationIn] = []

class BudgetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[float] = Field(None, gt=0)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[str] = None
    # None leaves allocations untouched; a list (even empty) replaces them
    allocations: Optional[List[AllocationIn]] = None

class ProgressResponse(BaseModel):
    total_spent: float
    remaining: float
    percentage: float
    status: BudgetHealthStatus

class BudgetInDB(BudgetBase):
    id: str
    household_id: str
    created_at: datetime
    category: Optional[CategorySummary] = None
    allocations: List[AllocationResponse] = []

    model_config = ConfigDict(from_attributes=True)

class BudgetWithProgress(BudgetInDB):
    progress: ProgressResponse
    expense_count: int = 0

class CategorySpend(BaseModel):
    total: float
    count: int
    percentage: float

class BudgetTrend(BaseModel):
    days_elapsed: int
    total_days: int
    daily_budget: float
    daily_spent: float
    projected_total: float

class BudgetProgressDetail(BaseModel):
    budget: BudgetInDB
    progress: ProgressResponse
    category_breakdown: Dict[str, CategorySpend]
    trend: BudgetTrend
