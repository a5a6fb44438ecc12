"""
Authentication Flow Tests.

Signup, login, logout revocation and access checks.
"""

import pytest
from sqlalchemy import select, update

from backend.app.models.audit_log import AuditLog
from backend.app.models.user import User


@pytest.mark.asyncio
async def test_signup_login_me_logout(client, db_session):
    signup = await client.post("/api/auth/signup", json={"username": "clerk", "password": "secret99"})
    assert signup.status_code == 201
    assert signup.json()["role"] == "OPERATOR"

    login = await client.post("/api/auth/login", json={"username": "clerk", "password": "secret99"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["username"] == "clerk"

    logout = await client.post("/api/auth/logout", headers=headers)
    assert logout.status_code == 200

    revoked = await client.get("/api/auth/me", headers=headers)
    assert revoked.status_code == 401

    actions = (await db_session.execute(select(AuditLog.action))).scalars().all()
    assert {"USER_CREATED", "LOGIN_SUCCESS", "LOGOUT"} <= set(actions)


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["ADMIN", "SUPERADMIN"])
async def test_privileged_roles_cannot_sign_up(client, role):
    response = await client.post(
        "/api/auth/signup", json={"username": "sneaky", "password": "secret99", "role": role}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_username(client):
    body = {"username": "clerk", "password": "secret99"}
    assert (await client.post("/api/auth/signup", json=body)).status_code == 201
    assert (await client.post("/api/auth/signup", json=body)).status_code == 400


@pytest.mark.asyncio
async def test_wrong_password_is_logged(client, db_session):
    await client.post("/api/auth/signup", json={"username": "clerk", "password": "secret99"})

    response = await client.post("/api/auth/login", json={"username": "clerk", "password": "wrong"})
    assert response.status_code == 401

    failures = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == "LOGIN_FAILED")
    )).scalars().all()
    assert len(failures) == 1


@pytest.mark.asyncio
async def test_protected_routes_need_a_valid_token(client):
    missing = await client.get("/api/shipments")
    assert missing.status_code in (401, 403)

    garbage = await client.get("/api/shipments", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_user_is_refused(client, operator_headers, db_session):
    await db_session.execute(update(User).where(User.username == "operator1").values(is_active=False))
    await db_session.commit()

    response = await client.get("/api/shipments", headers=operator_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
