from fastapi import APIRouter
from homebudget.app.api.v1 import users, households, categories, budgets, expenses, recurring_expenses, dashboard

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(households.router, prefix="/households", tags=["households"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(recurring_expenses.router, prefix="/recurring-expenses", tags=["recurring-expenses"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
