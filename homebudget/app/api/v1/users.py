from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from homebudget.app.schemas.users import UserCreate, UserResponse, UserUpdate
from homebudget.app.services.user_service import create_user, get_user_by_id, list_users, update_user
from homebudget.app.database import get_db_session
from homebudget.app.errors import AccessDeniedError
from homebudget.app.api.v1.deps import get_current_user_id

router = APIRouter()

@router.post("/", response_model=UserResponse, status_code=201)
async def register_user_route(user_data: UserCreate, db: Session = Depends(get_db_session)):
    """
    Register a user profile.

    - Returns 409 if the email is already registered (case-insensitive)
    """
    return create_user(db, user_data)

@router.get("/", response_model=List[UserResponse])
async def list_users_route(
    email: Optional[str] = Query(None, description="Exact email, case-insensitive"),
    db: Session = Depends(get_db_session)
):
    return list_users(db, email)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user_route(user_id: str, db: Session = Depends(get_db_session)):
    """
    Get a user profile by ID.
    """
    return get_user_by_id(db, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_route(
    user_id: str,
    user_data: UserUpdate,
    db: Session = Depends(get_db_session),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    Update a display name. Users may only update their own profile.
    """
    if user_id != current_user_id:
        raise AccessDeniedError("You can only update your own profile")
    return update_user(db, user_id, user_data)
