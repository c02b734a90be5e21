from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from typing import Dict, List, Optional, Any
from datetime import datetime, date as date_type

from homebudget.app.models.models import ExpenseType
from homebudget.app.schemas.categories import CategorySummary
from homebudget.app.schemas.users import UserSummary

MAX_BULK_EXPENSES = 100

class ExpenseCreate(BaseModel):
    household_id: str
    amount: float = Field(..., gt=0)
    type: ExpenseType = ExpenseType.EXPENSE
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    date: Optional[date_type] = None
    budget_id: Optional[str] = None
    category_id: Optional[str] = None
    is_recurring: bool = False
    recurring_id: Optional[str] = None
    attachments: List[HttpUrl] = []
    tags: List[str] = []

class ExpenseUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[ExpenseType] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    date: Optional[date_type] = None
    budget_id: Optional[str] = None
    category_id: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_id: Optional[str] = None
    attachments: Optional[List[HttpUrl]] = None
    tags: Optional[List[str]] = None

class ExpenseBulkCreate(BaseModel):
    expenses: List[ExpenseCreate] = Field(..., min_length=1, max_length=MAX_BULK_EXPENSES)

class BudgetRef(BaseModel):
    id: str
    name: str
    amount: float

    model_config = ConfigDict(from_attributes=True)

class ExpenseResponse(BaseModel):
    id: str
    household_id: str
    user_id: str
    amount: float
    type: ExpenseType
    description: Optional[str] = None
    date: date_type
    budget_id: Optional[str] = None
    category_id: Optional[str] = None
    is_recurring: bool
    recurring_id: Optional[str] = None
    tags: List[str] = []
    attachments: List[str] = []
    created_at: datetime
    user: Optional[UserSummary] = None
    category: Optional[CategorySummary] = None
    budget: Optional[BudgetRef] = None

    model_config = ConfigDict(from_attributes=True)

class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool

class ExpenseList(BaseModel):
    expenses: List[ExpenseResponse]
    pagination: Pagination

class ExpenseBulkResult(BaseModel):
    expenses: List[ExpenseResponse]
    count: int

class ExpenseTotals(BaseModel):
    total_income: float
    total_expenses: float
    total_transfers: float
    net_amount: float
    transaction_count: int

class ExpenseSummary(BaseModel):
    summary: ExpenseTotals
    grouped_by: str
    groups: Dict[str, Dict[str, Any]]
