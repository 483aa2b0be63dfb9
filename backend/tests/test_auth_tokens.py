"""
Tests for session tokens, password hashing and the auth dependencies.
"""
import pytest
from datetime import timedelta
from fastapi import HTTPException
from starlette.requests import Request

from auth import (
    COOKIE_NAME,
    create_access_token,
    create_user_token,
    decode_access_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from middleware import get_current_user, require_auth, require_admin
from models import UserRole


def make_request(cookie=None, authorization=None):
    headers = []
    if cookie:
        headers.append((b"cookie", f"{COOKIE_NAME}={cookie}".encode()))
    if authorization:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("secret1")
        assert hashed != "secret1"
        assert verify_password("secret1", hashed)
        assert not verify_password("secret2", hashed)

    def test_verify_without_hash_is_false(self):
        assert verify_password("secret1", None) is False

    def test_minimum_length(self):
        assert validate_password_strength("12345") == (
            False, "Password must be at least 6 characters long"
        )
        assert validate_password_strength("123456")[0] is True


class TestTokens:

    def test_user_token_carries_identity(self):
        token = create_user_token({"user_id": "USR-1", "email": "a@example.com", "role": "admin"})
        payload = decode_access_token(token)
        assert payload["id"] == "USR-1"
        assert payload["email"] == "a@example.com"
        assert payload["role"] == "admin"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        token = create_access_token({"id": "USR-1"}, expires_delta=timedelta(seconds=-5))
        assert decode_access_token(token) is None

    def test_garbage_token_rejected(self):
        assert decode_access_token("not-a-jwt") is None


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_cookie_session(self):
        token = create_access_token({"id": "USR-1", "email": "a@example.com", "role": "agent"})
        principal = await get_current_user(make_request(cookie=token))
        assert principal.id == "USR-1"
        assert principal.role == UserRole.AGENT

    @pytest.mark.asyncio
    async def test_bearer_header(self):
        token = create_access_token({"id": "USR-2", "email": "b@example.com", "role": "super_admin"})
        principal = await get_current_user(make_request(authorization=f"Bearer {token}"))
        assert principal.is_super_admin

    @pytest.mark.asyncio
    async def test_token_without_id_is_anonymous(self):
        token = create_access_token({"email": "a@example.com", "role": "agent"})
        assert await get_current_user(make_request(cookie=token)) is None

    @pytest.mark.asyncio
    async def test_unknown_role_is_anonymous(self):
        token = create_access_token({"id": "USR-1", "email": "a@example.com", "role": "owner"})
        assert await get_current_user(make_request(cookie=token)) is None

    @pytest.mark.asyncio
    async def test_require_auth_rejects_missing_credential(self):
        with pytest.raises(HTTPException) as exc:
            await require_auth(make_request())
        assert exc.value.status_code == 401
        assert exc.value.detail == "Not authenticated"

    @pytest.mark.asyncio
    async def test_require_admin_rejects_agent(self):
        token = create_access_token({"id": "USR-1", "email": "a@example.com", "role": "agent"})
        with pytest.raises(HTTPException) as exc:
            await require_admin(make_request(cookie=token))
        assert exc.value.status_code == 403

    @pytest.mark.asyncio
    async def test_require_admin_accepts_admin(self):
        token = create_access_token({"id": "USR-1", "email": "a@example.com", "role": "admin"})
        principal = await require_admin(make_request(cookie=token))
        assert principal.is_admin
