import pytest
from fastapi import status


def test_login_success(client, admin_user):
    """Test successful login with valid credentials."""
    login_data = {
        "email": admin_user.email,
        "password": "Password123!"
    }

    response = client.post("/api/auth/login", json=login_data)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "ADMIN"

def test_login_invalid_credentials(client):
    """Test login failure with wrong password."""
    response = client.post("/api/auth/login", json={"email": "nobody@jobflow.nl", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["errors"][0]["code"] == "AUTH_FAILED"

def test_login_token_opens_protected_routes(client, employee_user):
    response = client.post("/api/auth/login", json={"email": employee_user.email, "password": "Password123!"})
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["email"] == employee_user.email
    assert me.json()["full_name"] == "Eva Employee"

def test_inactive_user_is_refused(client, employee_user, auth_headers, db_session):
    employee_user.is_active = False
    db_session.commit()
    response = client.get("/api/auth/me", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_invalid_token_is_refused(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
