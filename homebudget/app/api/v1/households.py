from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, List

from homebudget.app.api.v1.deps import get_current_user_id
from homebudget.app.database import get_db_session
from homebudget.app.schemas.households import (
    HouseholdCreate, HouseholdResponse, HouseholdUpdate, InvitationCreate, InvitationResponse,
    JoinHousehold, MemberResponse, MemberRoleUpdate, PrimaryBudgetUpdate
)
from homebudget.app.services import household_service

router = APIRouter()

@router.post("/", response_model=HouseholdResponse, status_code=201)
def create_household_endpoint(
    household_data: HouseholdCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Create a household. The caller becomes its OWNER and the default
    categories are added.
    """
    return household_service.create_household(db, user_id, household_data)

@router.get("/", response_model=List[HouseholdResponse])
def list_households_endpoint(
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Get all households the caller belongs to
    """
    return household_service.list_households(db, user_id)

@router.get("/{household_id}", response_model=HouseholdResponse)
def get_household_endpoint(
    household_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return household_service.get_household(db, household_id, user_id)

@router.patch("/{household_id}", response_model=HouseholdResponse)
def update_household_endpoint(
    household_id: str,
    household_update: HouseholdUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Rename a household (OWNER or ADMIN)
    """
    return household_service.update_household(db, household_id, user_id, household_update)

@router.delete("/{household_id}", response_model=Dict[str, bool])
def delete_household_endpoint(
    household_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Delete a household with all of its data (OWNER only)
    """
    return household_service.delete_household(db, household_id, user_id)

@router.put("/{household_id}/primary-budget", response_model=HouseholdResponse)
def set_primary_budget_endpoint(
    household_id: str,
    primary_budget: PrimaryBudgetUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Set the budget the dashboard reports on by default; null clears it
    """
    return household_service.set_primary_budget(db, household_id, user_id, primary_budget.budget_id)

@router.post("/{household_id}/invitations", response_model=InvitationResponse, status_code=201)
def invite_member_endpoint(
    household_id: str,
    invitation_data: InvitationCreate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Invite someone by email (OWNER or ADMIN). Returns the one-time token
    and the link to send.
    """
    return household_service.invite_member(db, household_id, user_id, invitation_data)

@router.post("/{household_id}/join", response_model=MemberResponse, status_code=201)
def join_household_endpoint(
    household_id: str,
    join_data: JoinHousehold,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Accept an invitation to the household
    """
    return household_service.join_household(db, household_id, user_id, join_data.token)

@router.delete("/{household_id}/members/{member_user_id}", response_model=Dict[str, bool])
def remove_member_endpoint(
    household_id: str,
    member_user_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return household_service.remove_member(db, household_id, member_user_id, user_id)

@router.patch("/{household_id}/members/{member_user_id}/role", response_model=MemberResponse)
def update_member_role_endpoint(
    household_id: str,
    member_user_id: str,
    role_update: MemberRoleUpdate,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    """
    Change a member's role (OWNER only)
    """
    return household_service.update_member_role(db, household_id, member_user_id, user_id, role_update)

@router.post("/{household_id}/leave", response_model=Dict[str, bool])
def leave_household_endpoint(
    household_id: str,
    db: Session = Depends(get_db_session),
    user_id: str = Depends(get_current_user_id)
):
    return household_service.leave_household(db, household_id, user_id)
