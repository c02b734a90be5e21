from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from homebudget.app.models.models import HouseholdRole
from homebudget.app.schemas.users import UserSummary

class HouseholdCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

class HouseholdUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)

class PrimaryBudgetUpdate(BaseModel):
    budget_id: Optional[str] = None

class MemberResponse(BaseModel):
    user_id: str
    role: HouseholdRole
    joined_at: datetime
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)

class HouseholdResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    primary_budget_id: Optional[str] = None
    created_at: datetime
    members: List[MemberResponse] = []

    model_config = ConfigDict(from_attributes=True)

class InvitationCreate(BaseModel):
    email: EmailStr
    role: HouseholdRole = HouseholdRole.MEMBER

class InvitationResponse(BaseModel):
    id: str
    token: str
    household_id: str
    email: str
    role: HouseholdRole
    expires_at: datetime
    invite_link: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class JoinHousehold(BaseModel):
    token: str = Field(..., min_length=1)

class MemberRoleUpdate(BaseModel):
    role: HouseholdRole
