from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from homebudget.app.models.models import RecurrenceFrequency
from homebudget.app.schemas.categories import CategorySummary
from homebudget.app.schemas.expenses import ExpenseResponse

class RecurringExpenseCreate(BaseModel):
    household_id: str
    amount: float = Field(..., gt=0)
    frequency: RecurrenceFrequency
    description: Optional[str] = Field(None, max_length=255)
    category_id: Optional[str] = None
    budget_id: Optional[str] = None
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0=Monday, 6=Sunday")
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_schedule_days(self):
        if self.frequency in (RecurrenceFrequency.WEEKLY, RecurrenceFrequency.BIWEEKLY) and self.day_of_week is None:
            raise ValueError("day_of_week is required for weekly and biweekly schedules")
        if self.frequency == RecurrenceFrequency.MONTHLY and self.day_of_month is None:
            raise ValueError("day_of_month is required for monthly schedules")
        if self.frequency == RecurrenceFrequency.YEARLY and (self.day_of_month is None or self.month_of_year is None):
            raise ValueError("day_of_month and month_of_year are required for yearly schedules")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class RecurringExpenseUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    frequency: Optional[RecurrenceFrequency] = None
    description: Optional[str] = Field(None, max_length=255)
    category_id: Optional[str] = None
    budget_id: Optional[str] = None
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None

class RecurringExpenseResponse(BaseModel):
    id: str
    household_id: str
    user_id: str
    amount: float
    frequency: RecurrenceFrequency
    description: Optional[str] = None
    category_id: Optional[str] = None
    budget_id: Optional[str] = None
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    month_of_year: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    next_run: date
    last_run: Optional[date] = None
    is_active: bool
    created_at: datetime
    category: Optional[CategorySummary] = None

    model_config = ConfigDict(from_attributes=True)

class GenerationError(BaseModel):
    recurring_expense_id: str
    error: str

class GenerationResult(BaseModel):
    generated: int
    expenses: List[ExpenseResponse]
    errors: List[GenerationError] = []
