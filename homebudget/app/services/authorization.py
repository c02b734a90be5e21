"""
Household membership and role checks.

Every state-changing or household-scoped read goes through ``authorize``;
the raising variants are thin wrappers for service code.
"""
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Union

from sqlalchemy.orm import Session

from homebudget.app.errors import AccessDeniedError, NotFoundError
from homebudget.app.models.models import HouseholdMember, HouseholdRole, Expense

ANY_ROLE: FrozenSet[HouseholdRole] = frozenset(HouseholdRole)
WRITE_ROLES: FrozenSet[HouseholdRole] = frozenset({HouseholdRole.OWNER, HouseholdRole.ADMIN, HouseholdRole.MEMBER})
ADMIN_ROLES: FrozenSet[HouseholdRole] = frozenset({HouseholdRole.OWNER, HouseholdRole.ADMIN})
OWNER_ONLY: FrozenSet[HouseholdRole] = frozenset({HouseholdRole.OWNER})

NOT_A_MEMBER = "Access denied. You are not a member of this household."
INSUFFICIENT_ROLE = "Access denied. Your role does not permit this action."
NOT_EXPENSE_OWNER = "Access denied. You can only modify your own expenses unless you are an admin."


@dataclass(frozen=True)
class Allowed:
    membership: HouseholdMember


@dataclass(frozen=True)
class Denied:
    reason: str


AuthorizationResult = Union[Allowed, Denied]


def get_membership(db: Session, household_id: str, user_id: str) -> Optional[HouseholdMember]:
    return db.query(HouseholdMember).filter(
        HouseholdMember.household_id == household_id,
        HouseholdMember.user_id == user_id
    ).first()


def authorize(
    db: Session,
    household_id: str,
    user_id: str,
    required_roles: Optional[Iterable[HouseholdRole]] = None
) -> AuthorizationResult:
    """Check that the user belongs to the household with one of the required roles"""
    membership = get_membership(db, household_id, user_id)
    if membership is None:
        return Denied(NOT_A_MEMBER)
    if required_roles is not None and membership.role not in required_roles:
        return Denied(INSUFFICIENT_ROLE)
    return Allowed(membership)


def require_household_role(
    db: Session,
    household_id: str,
    user_id: str,
    required_roles: Optional[Iterable[HouseholdRole]] = None
) -> HouseholdMember:
    """Like ``authorize`` but raises AccessDeniedError instead of returning Denied"""
    result = authorize(db, household_id, user_id, required_roles)
    if isinstance(result, Denied):
        raise AccessDeniedError(result.reason)
    return result.membership


def authorize_expense_mutation(db: Session, expense: Expense, user_id: str) -> AuthorizationResult:
    """The creator of an expense, or an OWNER/ADMIN of its household, may change it"""
    result = authorize(db, expense.household_id, user_id)
    if isinstance(result, Denied):
        return result
    if expense.user_id != user_id and result.membership.role not in ADMIN_ROLES:
        return Denied(NOT_EXPENSE_OWNER)
    return result


def require_expense_mutation(db: Session, expense, user_id: str) -> HouseholdMember:
    result = authorize_expense_mutation(db, expense, user_id)
    if isinstance(result, Denied):
        raise AccessDeniedError(result.reason)
    return result.membership


def member_household_ids(db: Session, user_id: str):
    """IDs of every household the user belongs to"""
    return [
        household_id for (household_id,) in db.query(HouseholdMember.household_id).filter(
            HouseholdMember.user_id == user_id
        ).all()
    ]


def require_visible(db: Session, resource, user_id: str, message: str) -> HouseholdMember:
    """
    Resolve an id-addressed resource for a caller.

    A missing resource and one owned by a household the caller does not
    belong to are indistinguishable: both raise NotFoundError.
    """
    membership = get_membership(db, resource.household_id, user_id) if resource is not None else None
    if membership is None:
        raise NotFoundError(message)
    return membership
