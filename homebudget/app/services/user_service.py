import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from homebudget.app.errors import ConflictError, NotFoundError
from homebudget.app.models.models import User
from homebudget.app.schemas.users import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

def normalize_email(email: str) -> str:
    return email.strip().lower()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Case-insensitive lookup; None when nobody is registered under the address"""
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()

def create_user(db: Session, user_data: UserCreate) -> User:
    """Register a profile; email addresses are unique regardless of case"""
    if get_user_by_email(db, user_data.email):
        raise ConflictError("Email already registered")

    user = User(email=normalize_email(user_data.email), name=user_data.name)
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User registered: {user.id}")
    return user

def list_users(db: Session, email: Optional[str] = None) -> List[User]:
    query = db.query(User)
    if email:
        query = query.filter(func.lower(User.email) == normalize_email(email))
    return query.order_by(User.created_at).all()

def get_user_by_id(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")
    return user

def update_user(db: Session, user_id: str, user_data: UserUpdate) -> User:
    """Only the display name of a profile can change"""
    user = get_user_by_id(db, user_id)

    for key, value in user_data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, key, value)

    db.commit()
    db.refresh(user)

    logger.info(f"User profile updated: {user.id}")
    return user
