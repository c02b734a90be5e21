from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date

from homebudget.app.models.models import BudgetPeriod, BudgetHealthStatus, HouseholdRole
from homebudget.app.schemas.expenses import ExpenseResponse

# --- MONTHLY SUMMARY ---

class SelectedBudget(BaseModel):
    id: str
    name: str
    amount: float
    period: BudgetPeriod

class PeriodInfo(BaseModel):
    month: int
    year: int
    start_date: date
    end_date: date
    days_elapsed: int
    total_days: int

class SummaryTotals(BaseModel):
    total_expenses: float
    total_income: float
    net: float
    total_budget_amount: float
    budget_spent: float
    budget_remaining: float
    budget_usage_percentage: float
    total_transactions: int

class CategoryBucket(BaseModel):
    id: str
    name: str
    total: float
    count: int
    percentage: float
    budget_amount: Optional[float] = None

class CategoryBreakdown(BaseModel):
    all: List[CategoryBucket]
    top5: List[CategoryBucket]

class MemberContribution(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    total: float
    percentage: float

class DailyTotal(BaseModel):
    date: str
    total: float

class WeeklyTotal(BaseModel):
    week_number: int
    total: float
    days: int

class Trends(BaseModel):
    daily_breakdown: List[DailyTotal]
    week_over_week: List[WeeklyTotal]
    projected_spending: float

class MonthlySummary(BaseModel):
    selected_budget: Optional[SelectedBudget] = None
    period: PeriodInfo
    summary: SummaryTotals
    category_breakdown: CategoryBreakdown
    member_contributions: List[MemberContribution]
    trends: Trends

# --- BUDGET HEALTH ---

class CategoryRef(BaseModel):
    id: str
    name: str

class BudgetHealthEntry(BaseModel):
    id: str
    name: str
    amount: float
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date] = None
    category: Optional[CategoryRef] = None
    spent: float
    remaining: float
    percentage: float
    health_status: BudgetHealthStatus
    days_remaining: Optional[int] = None
    projected_spending: Optional[float] = None

class HealthSummary(BaseModel):
    total: int
    on_track: int
    warning: int
    over_budget: int

class BudgetHealthReport(BaseModel):
    budgets: List[BudgetHealthEntry]
    summary: HealthSummary
    grouped: Dict[BudgetHealthStatus, List[BudgetHealthEntry]]

# --- HOUSEHOLD OVERVIEW ---

class OverviewMember(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: str
    role: HouseholdRole

class OverviewHousehold(BaseModel):
    id: str
    name: str
    member_count: int
    members: List[OverviewMember]

class OverviewStats(BaseModel):
    total_budgets: int
    total_expenses: int
    total_categories: int

class MonthTotals(BaseModel):
    total_expenses: float
    total_income: float
    net: float

class HouseholdOverview(BaseModel):
    household: OverviewHousehold
    stats: OverviewStats
    recent_activity: List[ExpenseResponse]
    current_month_summary: MonthTotals
