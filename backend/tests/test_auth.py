"""
Tests for login, logout, session resolution and the authorization gates.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient
from starlette.requests import Request

from ticketing.api.deps import require_admin, require_auth, require_organizer
from ticketing.core.config import get_settings
from ticketing.core.exceptions import Forbidden, Unauthenticated
from ticketing.core.security import create_session_token, hash_password, resolve_user_id, verify_password
from ticketing.models.user import UserRole

from conftest import PASSWORD, session_headers


def _request_with_cookie(token=None) -> Request:
    headers = []
    if token is not None:
        headers.append((b"cookie", f"{get_settings().SESSION_COOKIE_NAME}={token}".encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class _RoleResult:
    def __init__(self, role):
        self.role = role

    def scalar_one_or_none(self):
        return self.role


class _RoleSession:
    """Stands in for a session whose users table holds a single role."""

    def __init__(self, role):
        self.role = role

    async def execute(self, statement):
        return _RoleResult(self.role)


# --- Passwords and session tokens ---

def test_password_hash_roundtrip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_malformed_hash():
    assert verify_password("s3cret", "not-a-bcrypt-hash") is False


def test_resolve_user_id_valid_token():
    assert resolve_user_id(create_session_token(42)) == 42


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_resolve_user_id_rejects_unusable_tokens(token):
    assert resolve_user_id(token) is None


def test_resolve_user_id_rejects_non_numeric_subject():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "abc", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    assert resolve_user_id(token) is None


def test_resolve_user_id_rejects_foreign_signature():
    token = jwt.encode(
        {"sub": "1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret-key-that-is-long-enough",
        algorithm="HS256",
    )
    assert resolve_user_id(token) is None


def test_resolve_user_id_rejects_expired_token():
    token = create_session_token(7, expires_delta=timedelta(seconds=-60))
    assert resolve_user_id(token) is None


# --- Gates ---

@pytest.mark.asyncio
async def test_require_auth_attaches_identity():
    request = _request_with_cookie(create_session_token(5))
    identity = await require_auth(request)
    assert identity.user_id == 5
    assert identity.role is None
    assert request.state.identity == identity


@pytest.mark.asyncio
async def test_require_auth_without_cookie():
    with pytest.raises(Unauthenticated):
        await require_auth(_request_with_cookie())


@pytest.mark.asyncio
async def test_role_gate_unknown_stored_role_fails_closed():
    request = _request_with_cookie(create_session_token(9))
    with pytest.raises(Forbidden):
        await require_admin(request, db=_RoleSession("Superuser"))


@pytest.mark.asyncio
async def test_role_gate_missing_user_is_unauthenticated():
    request = _request_with_cookie(create_session_token(9))
    with pytest.raises(Unauthenticated):
        await require_organizer(request, db=_RoleSession(None))


@pytest.mark.asyncio
async def test_role_gate_admits_allowed_role():
    request = _request_with_cookie(create_session_token(9))
    identity = await require_organizer(request, db=_RoleSession("Admin"))
    assert identity.user_id == 9
    assert identity.role == UserRole.ADMIN


def test_user_role_parse():
    assert UserRole.parse("Organizer") is UserRole.ORGANIZER
    assert UserRole.parse("organizer") is None
    assert UserRole.parse(None) is None


# --- HTTP ---

@pytest.mark.asyncio
async def test_login_sets_session_cookie(client: AsyncClient, customer):
    response = await client.post(
        "/api/login",
        json={"email": customer.email, "password": PASSWORD},
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["userId"] == customer.id
    assert user["email"] == customer.email
    assert user["role"] == "Customer"
    assert "passwordHash" not in user

    set_cookie = response.headers["set-cookie"]
    name, _, token = set_cookie.split(";")[0].partition("=")
    assert name == get_settings().SESSION_COOKIE_NAME
    assert resolve_user_id(token) == customer.id
    assert "httponly" in set_cookie.lower()


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, customer):
    response = await client.post(
        "/api/login",
        json={"email": customer.email, "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient):
    response = await client.post(
        "/api/login",
        json={"email": "nobody@example.com", "password": PASSWORD},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_missing_fields(client: AsyncClient):
    response = await client.post("/api/login", json={"email": "casey@example.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "Email and password required"}


@pytest.mark.asyncio
async def test_me_returns_current_user(client: AsyncClient, customer, customer_headers):
    response = await client.get("/api/me", headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["user"]["name"] == customer.name


@pytest.mark.asyncio
async def test_me_requires_session(client: AsyncClient):
    response = await client.get("/api/me")
    assert response.status_code == 401
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_me_with_session_for_deleted_user(client: AsyncClient):
    response = await client.get("/api/me", headers=session_headers(999))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient, customer_headers):
    response = await client.post("/api/logout", headers=customer_headers)
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{get_settings().SESSION_COOKIE_NAME}=")
    assert "max-age=0" in set_cookie.lower()


# --- Gate ordering over HTTP ---

@pytest.mark.asyncio
async def test_unauthenticated_checked_before_body(client: AsyncClient):
    """A missing session is reported as 401 even when the body is invalid."""
    response = await client.post("/api/manage/events", json={})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_customer_forbidden_from_management(client: AsyncClient, customer_headers, venue):
    response = await client.post(
        "/api/manage/events",
        json={
            "title": "Nope",
            "category": "Music",
            "startDate": "2030-01-01T18:00:00Z",
            "duration": 2,
            "venueId": venue.id,
        },
        headers=customer_headers,
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden"}


@pytest.mark.asyncio
async def test_role_change_applies_to_existing_session(client: AsyncClient, db_session, organizer, venue):
    """Demoting a user takes effect on their next request with the same cookie."""
    headers = session_headers(organizer)
    payload = {
        "title": "Before demotion",
        "category": "Music",
        "startDate": "2030-01-01T18:00:00Z",
        "duration": 2,
        "venueId": venue.id,
    }
    first = await client.post("/api/manage/events", json=payload, headers=headers)
    assert first.status_code == 201

    organizer.role = UserRole.CUSTOMER.value
    await db_session.commit()

    second = await client.post("/api/manage/events", json=payload, headers=headers)
    assert second.status_code == 403
