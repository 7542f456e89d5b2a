import pytest
from fastapi import status
from talentflow.models.audit_log import AuditLog
from talentflow.models.user import UserRole
from talentflow.services import auth as auth_service


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_login_success(client, admin_user):
    """Test successful login with valid credentials."""
    response = _login(client, admin_user.email, "AdminPassword123!")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "admin"


def test_login_is_case_insensitive_on_email(client, admin_user):
    response = _login(client, admin_user.email.upper(), "AdminPassword123!")
    assert response.status_code == status.HTTP_200_OK


def test_login_invalid_credentials(client, admin_user, db_session):
    """Test login failure with wrong password."""
    response = _login(client, admin_user.email, "wrong")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Incorrect email or password"
    assert db_session.query(AuditLog).filter(AuditLog.action == "failed_login").count() == 1


def test_inactive_user_cannot_login(client, make_user):
    user = make_user(UserRole.EMPLOYEE, email="gone@alphacorp.com", is_active=False)
    response = _login(client, user.email, "Password123!")
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_me_returns_profile(client, admin_user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["email"] == admin_user.email
    assert response.json()["role"] == "admin"


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_rotates_session(client, admin_user):
    tokens = _login(client, admin_user.email, "AdminPassword123!").json()

    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["refresh_token"] != tokens["refresh_token"]

    # The old refresh token is revoked
    again = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert again.status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_revokes_refresh_token(client, admin_user):
    tokens = _login(client, admin_user.email, "AdminPassword123!").json()
    assert client.post("/api/auth/logout", json={"refresh_token": tokens["refresh_token"]}).status_code == 200
    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_token_cannot_be_used_as_access_token(client, admin_user):
    refresh = auth_service.create_refresh_token(data={"sub": admin_user.id})
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
