"""
Unit Tests for authentication

Tests:
- Password hashing
- JWT issue / decode
- AuthService login against the in-memory repository
- Bearer-token dependencies

Run with: pytest tests/test_auth.py -v
"""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from middleware.auth import get_current_user_required
from services.auth import (
    AuthService,
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
    seed_demo_user,
    DEMO_USER_EMAIL,
    DEMO_USER_PASSWORD,
)
from services.repository import InMemoryRepository


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestPasswords:
    """bcrypt hashing via passlib."""

    def test_hash_and_verify(self):
        hashed = get_password_hash("segredo")
        assert hashed != "segredo"
        assert verify_password("segredo", hashed) is True
        assert verify_password("errado", hashed) is False

    def test_garbage_hash_does_not_verify(self):
        assert verify_password("segredo", "not-a-bcrypt-hash") is False


class TestTokens:
    """JWT round trip."""

    def test_decode_created_token(self):
        token = create_access_token("user-1", "ana@example.com")
        data = decode_token(token)
        assert data.user_id == "user-1"
        assert data.email == "ana@example.com"
        assert data.token_type == "access"
        assert data.exp is not None

    def test_expired_token_is_rejected(self):
        token = create_access_token("user-1", "ana@example.com", expires_delta=timedelta(seconds=-5))
        assert decode_token(token) is None

    def test_garbage_token_is_rejected(self):
        assert decode_token("not.a.jwt") is None


class TestAuthService:
    """Login flow."""

    @pytest.mark.asyncio
    async def test_login_with_demo_user(self):
        repo = InMemoryRepository()
        await seed_demo_user(repo)

        token = await AuthService(repo).login(DEMO_USER_EMAIL, DEMO_USER_PASSWORD)

        assert token is not None
        assert token.token_type == "bearer"
        assert decode_token(token.access_token).user_id == token.user_id

    @pytest.mark.asyncio
    async def test_wrong_password(self):
        repo = InMemoryRepository()
        await seed_demo_user(repo)
        assert await AuthService(repo).login(DEMO_USER_EMAIL, "wrong") is None

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        assert await AuthService(InMemoryRepository()).login("nobody@example.com", "x") is None

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_login(self):
        repo = InMemoryRepository()
        service = AuthService(repo)
        user = await service.register_user("ana@example.com", "segredo", "Ana")
        stored = repo._users[user.id]
        stored.is_active = False
        assert await service.login("ana@example.com", "segredo") is None
        assert await service.get_user(user.id) is None

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self):
        service = AuthService(InMemoryRepository())
        await service.register_user("ana@example.com", "segredo")
        with pytest.raises(ValueError):
            await service.register_user("ANA@example.com", "outra")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["", "ana", "ana@", "@example.com", "ana@localhost"])
    async def test_register_rejects_malformed_email(self, email):
        with pytest.raises(ValueError, match="Invalid email address"):
            await AuthService(InMemoryRepository()).register_user(email, "segredo")

    @pytest.mark.asyncio
    async def test_registered_operator_can_login(self):
        service = AuthService(InMemoryRepository())
        user = await service.register_user("  Bea@Example.com ", "segredo", " Bea ")
        assert user.email == "bea@example.com"
        assert user.name == "Bea"

        token = await service.login("bea@example.com", "segredo")
        assert token.user_id == user.id
        assert decode_token(token.access_token).name == "Bea"

    @pytest.mark.asyncio
    async def test_seed_demo_user_is_idempotent(self):
        repo = InMemoryRepository()
        first = await seed_demo_user(repo)
        second = await seed_demo_user(repo)
        assert first.id == second.id


class TestAuthDependencies:
    """Bearer-token dependencies."""

    @pytest.mark.asyncio
    async def test_required_user_without_credentials(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_required(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_required_user_with_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_required(_bearer("garbage"))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_required_user_with_valid_token(self):
        user = await get_current_user_required(_bearer(create_access_token("user-1", "ana@example.com")))
        assert user.id == "user-1"
        assert user.email == "ana@example.com"
