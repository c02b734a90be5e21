import pytest
from fastapi import status, HTTPException

from homebudget.app.models.models import Budget, Expense, HouseholdRole
from homebudget.app.schemas.categories import CategoryCreate, CategoryUpdate
from homebudget.app.services.category_service import (
    DEFAULT_CATEGORIES, create_category, delete_category, seed_categories, update_category
)

# Service layer tests
def test_create_subcategory(db_session, household, owner, make_category):
    parent = make_category(household, name="Food")

    child = create_category(
        db_session,
        CategoryCreate(household_id=household.id, name="Takeout", parent_id=parent.id, color="#ec4899"),
        owner.id
    )

    assert child.parent_id == parent.id
    assert child.color == "#ec4899"


def test_parent_from_other_household_not_found(db_session, household, owner, outsider, make_household, make_category):
    foreign_parent = make_category(make_household(outsider), name="Foreign")

    with pytest.raises(HTTPException) as excinfo:
        create_category(
            db_session,
            CategoryCreate(household_id=household.id, name="Child", parent_id=foreign_parent.id),
            owner.id
        )
    assert excinfo.value.status_code == 404


def test_category_cannot_be_its_own_parent(db_session, household, owner, make_category):
    category = make_category(household)

    with pytest.raises(HTTPException) as excinfo:
        update_category(db_session, category.id, CategoryUpdate(parent_id=category.id), owner.id)
    assert excinfo.value.status_code == 400


def test_member_cannot_create_category(db_session, household, make_user, add_member):
    member = make_user()
    add_member(household, member, HouseholdRole.MEMBER)

    with pytest.raises(HTTPException) as excinfo:
        create_category(db_session, CategoryCreate(household_id=household.id, name="Pets"), member.id)
    assert excinfo.value.status_code == 403


def test_delete_category_with_children_conflicts(db_session, household, owner, make_category):
    parent = make_category(household, name="Food")
    make_category(household, name="Takeout", parent=parent)

    with pytest.raises(HTTPException) as excinfo:
        delete_category(db_session, parent.id, owner.id, force=True)
    assert excinfo.value.status_code == 409


def test_delete_category_in_use_requires_force(db_session, household, owner, make_category, make_budget, make_expense):
    category = make_category(household)
    expense = make_expense(household, owner, 20.0, category=category)
    budget = make_budget(household, category=category)

    with pytest.raises(HTTPException) as excinfo:
        delete_category(db_session, category.id, owner.id)
    assert excinfo.value.status_code == 409
    assert excinfo.value.details["usage"]["expenses"] == 1

    result = delete_category(db_session, category.id, owner.id, force=True)

    assert result["success"] is True
    assert db_session.get(Expense, expense.id).category_id is None
    assert db_session.get(Budget, budget.id).category_id is None


def test_seed_rejects_household_with_categories(db_session, household, owner, make_category):
    seeded = seed_categories(db_session, household.id, owner.id)
    assert len(seeded) == len(DEFAULT_CATEGORIES)

    with pytest.raises(HTTPException) as excinfo:
        seed_categories(db_session, household.id, owner.id)
    assert excinfo.value.status_code == 409

# API layer tests
def test_default_categories_api(client):
    response = client.get("/api/v1/categories/default")

    assert response.status_code == status.HTTP_200_OK
    assert [c["name"] for c in response.json()][:3] == ["Groceries", "Utilities", "Entertainment"]


def test_list_categories_api(client, household, owner, outsider, make_category, as_user):
    make_category(household, name="Groceries")
    make_category(household, name="Dining")

    response = client.get(f"/api/v1/categories/?household_id={household.id}", headers=as_user(owner))
    assert response.status_code == status.HTTP_200_OK
    assert [c["name"] for c in response.json()] == ["Dining", "Groceries"]

    response = client.get(f"/api/v1/categories/?household_id={household.id}", headers=as_user(outsider))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_get_foreign_category_api_not_found(client, household, outsider, make_category, as_user):
    category = make_category(household)

    response = client.get(f"/api/v1/categories/{category.id}", headers=as_user(outsider))

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_category_invalid_color_api(client, household, owner, as_user):
    response = client.post(
        "/api/v1/categories/",
        json={"household_id": household.id, "name": "Pets", "color": "blue"},
        headers=as_user(owner)
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["details"][0]["field"] == "color"


def test_delete_category_force_api(client, household, owner, make_category, make_expense, as_user):
    category = make_category(household)
    make_expense(household, owner, 5.0, category=category)

    response = client.delete(f"/api/v1/categories/{category.id}", headers=as_user(owner))
    assert response.status_code == status.HTTP_409_CONFLICT

    response = client.delete(f"/api/v1/categories/{category.id}?force=true", headers=as_user(owner))
    assert response.status_code == status.HTTP_200_OK
