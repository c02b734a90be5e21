import pytest
from fastapi import status, HTTPException
from uuid import uuid4

from homebudget.app.services.user_service import create_user, get_user_by_id, get_user_by_email, list_users, update_user
from homebudget.app.schemas.users import UserCreate, UserUpdate

# Service layer tests
def test_create_user_normalizes_email(db_session):
    user = create_user(db_session, UserCreate(email="New.User@Example.com", name="New User"))

    assert user.id is not None
    assert user.email == "new.user@example.com"
    assert user.name == "New User"

def test_email_is_unique_regardless_of_case(db_session, owner):
    with pytest.raises(HTTPException) as excinfo:
        create_user(db_session, UserCreate(email=owner.email.upper(), name="Duplicate User"))

    assert excinfo.value.status_code == 409
    assert "Email already registered" in str(excinfo.value.detail)

def test_get_nonexistent_user_by_id_service(db_session):
    random_id = str(uuid4())

    with pytest.raises(HTTPException) as excinfo:
        get_user_by_id(db_session, random_id)

    assert excinfo.value.status_code == 404
    assert f"User with id {random_id} not found" in str(excinfo.value.detail)

def test_get_user_by_email_service(db_session, owner):
    assert get_user_by_email(db_session, " Owner@Example.com ").id == owner.id
    assert get_user_by_email(db_session, "nonexistent@example.com") is None

def test_list_users_by_email(db_session, owner, outsider):
    assert {user.id for user in list_users(db_session)} == {owner.id, outsider.id}
    assert [user.id for user in list_users(db_session, "OUTSIDER@example.com")] == [outsider.id]

def test_update_user_ignores_unset_fields(db_session, owner):
    assert update_user(db_session, owner.id, UserUpdate(name="Updated Name")).name == "Updated Name"
    assert update_user(db_session, owner.id, UserUpdate()).name == "Updated Name"

# API layer tests
def test_create_user_api(client):
    response = client.post(
        "/api/v1/users/",
        json={"email": "apiuser@example.com", "name": "API User"}
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["email"] == "apiuser@example.com"
    assert data["name"] == "API User"

def test_create_duplicate_user_api(client, owner):
    response = client.post(
        "/api/v1/users/",
        json={"email": owner.email, "name": "Duplicate API User"}
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "CONFLICT"

def test_invalid_email_format(client):
    response = client.post(
        "/api/v1/users/",
        json={"email": "notanemail", "name": "Invalid Email User"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    error = response.json()["error"]
    assert error["code"] == "VALIDATION"
    assert any(detail["field"] == "email" for detail in error["details"])

def test_find_user_by_email_api(client, owner):
    response = client.get("/api/v1/users/?email=OWNER@example.com")

    assert response.status_code == status.HTTP_200_OK
    assert [user["id"] for user in response.json()] == [owner.id]

def test_get_nonexistent_user_api(client):
    response = client.get(f"/api/v1/users/{uuid4()}")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["code"] == "NOT_FOUND"

def test_update_user_api(client, owner, as_user):
    response = client.patch(
        f"/api/v1/users/{owner.id}",
        json={"name": "Updated via API"},
        headers=as_user(owner)
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Updated via API"

def test_update_other_user_api_denied(client, owner, outsider, as_user):
    response = client.patch(
        f"/api/v1/users/{owner.id}",
        json={"name": "Not mine"},
        headers=as_user(outsider)
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["code"] == "ACCESS_DENIED"

def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["code"] == "NOT_FOUND"
