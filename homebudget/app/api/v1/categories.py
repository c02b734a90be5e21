from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Dict, List

from homebudget.app.api.v1.deps import get_current_user_id
from homebudget.app.schemas.categories import (
    CategoryCreate, CategoryResponse, CategorySeed, CategoryUpdate, DefaultCategory
)
from homebudget.app.services.category_service import (
    create_category,
    delete_category,
    get_categories,
    get_category_by_id,
    get_default_categories,
    seed_categories,
    update_category
)
from homebudget.app.database import get_db_session

router = APIRouter()

@router.get("/default", response_model=List[DefaultCategory])
async def get_default_categories_route():
    """
    The categories every new household starts with
    """
    return get_default_categories()

@router.post("/seed", response_model=List[CategoryResponse], status_code=201)
def seed_categories_route(
    seed: CategorySeed,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Add the default categories to a household that has none.

    - Returns 409 if the household already has categories
    """
    return seed_categories(db, seed.household_id, user_id)

@router.post("/", response_model=CategoryResponse, status_code=201)
def create_new_category(
    category_data: CategoryCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Create a category, optionally as a subcategory of another one in the
    same household
    """
    return create_category(db, category_data, user_id)

@router.get("/", response_model=List[CategoryResponse])
def list_categories(
    household_id: str = Query(..., description="ID of the household"),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return get_categories(db, household_id, user_id)

@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return get_category_by_id(db, category_id, user_id)

@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category_route(
    category_id: str,
    category_update: CategoryUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return update_category(db, category_id, category_update, user_id)

@router.delete("/{category_id}", response_model=Dict[str, Any])
def delete_category_route(
    category_id: str,
    force: bool = Query(False, description="Clear references from expenses and budgets before deleting"),
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Delete a category.

    - Returns 409 if it has subcategories
    - Returns 409 if it is still in use, unless force=true
    """
    return delete_category(db, category_id, user_id, force)
