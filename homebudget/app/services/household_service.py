import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from homebudget.app.config import get_settings
from homebudget.app.errors import AccessDeniedError, ConflictError, NotFoundError, ValidationFailedError
from homebudget.app.models.models import Budget, Household, HouseholdMember, HouseholdRole, Invitation, User
from homebudget.app.schemas.households import HouseholdCreate, HouseholdUpdate, InvitationCreate, MemberRoleUpdate
from homebudget.app.services.authorization import (
    ADMIN_ROLES, OWNER_ONLY, get_membership, member_household_ids, require_household_role
)
from homebudget.app.services.category_service import seed_default_categories
from homebudget.app.services.user_service import get_user_by_email, normalize_email

logger = logging.getLogger(__name__)

def create_household(db: Session, user_id: str, household_data: HouseholdCreate) -> Household:
    """Create a household; the creator becomes its OWNER and default categories are seeded"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")

    household = Household(name=household_data.name, owner_id=user_id)
    household.members.append(HouseholdMember(user_id=user_id, role=HouseholdRole.OWNER))
    db.add(household)
    db.flush()

    seed_default_categories(db, household.id)

    db.commit()
    db.refresh(household)

    logger.info(f"Household created: {household.id} by user {user_id}")
    return household

def list_households(db: Session, user_id: str) -> List[Household]:
    """All households the user is a member of"""
    household_ids = member_household_ids(db, user_id)
    if not household_ids:
        return []
    return db.query(Household).filter(Household.id.in_(household_ids)).order_by(Household.created_at).all()

def get_household(db: Session, household_id: str, user_id: str) -> Household:
    # Membership first, so non-members cannot probe which households exist
    require_household_role(db, household_id, user_id)
    household = db.query(Household).filter(Household.id == household_id).first()
    if not household:
        raise NotFoundError("Household not found")
    return household

def update_household(db: Session, household_id: str, user_id: str, household_update: HouseholdUpdate) -> Household:
    require_household_role(db, household_id, user_id, ADMIN_ROLES)
    household = get_household(db, household_id, user_id)

    if household_update.name is not None:
        household.name = household_update.name

    db.commit()
    db.refresh(household)
    logger.info(f"Household updated: {household_id} by user {user_id}")
    return household

def delete_household(db: Session, household_id: str, user_id: str) -> Dict[str, bool]:
    """Delete a household and everything that belongs to it (OWNER only)"""
    require_household_role(db, household_id, user_id, OWNER_ONLY)
    household = get_household(db, household_id, user_id)

    household.primary_budget_id = None
    db.delete(household)
    db.commit()

    logger.info(f"Household deleted: {household_id} by user {user_id}")
    return {"success": True}

def set_primary_budget(db: Session, household_id: str, user_id: str, budget_id: Optional[str]) -> Household:
    """Point the household's dashboard at one of its budgets, or clear it with None"""
    require_household_role(db, household_id, user_id, ADMIN_ROLES)
    household = get_household(db, household_id, user_id)

    if budget_id is not None:
        budget = db.query(Budget).filter(Budget.id == budget_id, Budget.household_id == household_id).first()
        if not budget:
            raise NotFoundError("Budget not found")

    household.primary_budget_id = budget_id
    db.commit()
    db.refresh(household)
    logger.info(f"Primary budget for household {household_id} set to {budget_id} by user {user_id}")
    return household

# --- MEMBERSHIP ---

def invite_member(db: Session, household_id: str, user_id: str, invitation_data: InvitationCreate) -> Dict[str, Any]:
    """
    Create a one-time invitation for an email address.

    Delivery of the invitation link is handled outside this service; the
    link is returned to the caller and logged.
    """
    require_household_role(db, household_id, user_id, ADMIN_ROLES)
    if invitation_data.role == HouseholdRole.OWNER:
        raise ValidationFailedError("Invitations cannot grant the OWNER role")

    existing_user = get_user_by_email(db, invitation_data.email)
    if existing_user and get_membership(db, household_id, existing_user.id):
        raise ConflictError("User is already a member of this household")

    settings = get_settings()
    invitation = Invitation(
        token=secrets.token_hex(32),
        household_id=household_id,
        email=normalize_email(invitation_data.email),
        role=invitation_data.role,
        invited_by=user_id,
        expires_at=datetime.utcnow() + timedelta(days=settings.invitation_expiry_days),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)

    invite_link = f"{settings.frontend_url}/households/join?token={invitation.token}"
    logger.info(f"Invitation created for household {household_id} to {invitation.email}")

    return {
        "id": invitation.id,
        "token": invitation.token,
        "household_id": invitation.household_id,
        "email": invitation.email,
        "role": invitation.role,
        "expires_at": invitation.expires_at,
        "invite_link": invite_link,
    }

def join_household(db: Session, household_id: str, user_id: str, token: str) -> HouseholdMember:
    """Accept an invitation; the token is consumed in the same transaction as the membership"""
    invitation = db.query(Invitation).filter(Invitation.token == token).first()
    if not invitation:
        raise ValidationFailedError("Invalid invitation token")
    if invitation.used_at is not None:
        raise ValidationFailedError("Invitation token has already been used")
    if invitation.expires_at < datetime.utcnow():
        raise ValidationFailedError("Invitation token has expired")
    if invitation.household_id != household_id:
        raise ValidationFailedError("Invalid invitation token for this household")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")
    if user.email.lower() != invitation.email.lower():
        raise ValidationFailedError("Email does not match invitation")

    if get_membership(db, household_id, user_id):
        raise ConflictError("You are already a member of this household")

    member = HouseholdMember(household_id=household_id, user_id=user_id, role=invitation.role)
    db.add(member)
    invitation.used_at = datetime.utcnow()
    db.commit()
    db.refresh(member)

    logger.info(f"User {user_id} joined household {household_id} via invitation {invitation.id}")
    return member

def remove_member(db: Session, household_id: str, target_user_id: str, user_id: str) -> Dict[str, bool]:
    require_household_role(db, household_id, user_id, ADMIN_ROLES)

    target = get_membership(db, household_id, target_user_id)
    if not target:
        raise NotFoundError("Member not found")
    if target.role == HouseholdRole.OWNER:
        raise AccessDeniedError("Cannot remove the household owner")
    if target_user_id == user_id:
        raise ValidationFailedError("Use the leave endpoint to remove yourself")

    db.delete(target)
    db.commit()

    logger.info(f"User {target_user_id} removed from household {household_id} by {user_id}")
    return {"success": True}

def update_member_role(
    db: Session,
    household_id: str,
    target_user_id: str,
    user_id: str,
    role_update: MemberRoleUpdate
) -> HouseholdMember:
    require_household_role(db, household_id, user_id, OWNER_ONLY)

    target = get_membership(db, household_id, target_user_id)
    if not target:
        raise NotFoundError("Member not found")
    if target.role == HouseholdRole.OWNER:
        raise AccessDeniedError("Cannot change the owner role")
    if role_update.role == HouseholdRole.OWNER:
        raise ValidationFailedError("A household has exactly one owner")

    target.role = role_update.role
    db.commit()
    db.refresh(target)

    logger.info(f"Member {target_user_id} role updated to {role_update.role.value} in household {household_id}")
    return target

def leave_household(db: Session, household_id: str, user_id: str) -> Dict[str, bool]:
    member = get_membership(db, household_id, user_id)
    if not member:
        raise NotFoundError("You are not a member of this household")
    if member.role == HouseholdRole.OWNER:
        raise AccessDeniedError("Owner cannot leave the household. Delete the household instead.")

    db.delete(member)
    db.commit()

    logger.info(f"User {user_id} left household {household_id}")
    return {"success": True}
