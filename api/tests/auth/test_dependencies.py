"""Tests for bearer-token identity extraction."""

from unittest.mock import Mock
from uuid import uuid4

import pytest
from fastapi import HTTPException

from src.auth.dependencies import (
    get_current_user,
    get_token_from_header,
    require_admin,
)
from src.auth.permissions import UserRole
from src.auth.schemas import AuthenticatedUser
from src.auth.security import create_access_token
from src.core.context import clear_context, get_user_id


def _request(authorization: str | None) -> Mock:
    request = Mock()
    request.headers = {"Authorization": authorization} if authorization else {}
    return request


class TestGetTokenFromHeader:
    """Tests for get_token_from_header."""

    def test_bearer_token(self) -> None:
        assert get_token_from_header(_request("Bearer abc.def.ghi")) == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        assert get_token_from_header(_request("bearer abc")) == "abc"

    @pytest.mark.parametrize("header", [None, "abc", "Basic abc", "Bearer a b"])
    def test_missing_or_malformed(self, header: str | None) -> None:
        assert get_token_from_header(_request(header)) is None


class TestGetCurrentUser:
    """Tests for get_current_user and friends."""

    @pytest.mark.asyncio
    async def test_valid_token(self) -> None:
        """Identity fields come from the token and the user id lands in the log context."""
        clear_context()
        user_id = uuid4()
        token = create_access_token(
            {"sub": str(user_id), "email": "ana@campus.edu", "role": "user", "name": "Ana"}
        )

        user = await get_current_user(token)

        assert user.id == user_id
        assert user.email == "ana@campus.edu"
        assert user.role == UserRole.USER
        assert user.name == "Ana"
        assert get_user_id() == str(user_id)

    @pytest.mark.asyncio
    async def test_missing_token(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Authentication required"

    @pytest.mark.asyncio
    async def test_invalid_token(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("not-a-token")
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_non_uuid_subject_is_rejected(self) -> None:
        token = create_access_token({"sub": "42", "email": "x@campus.edu"})
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_require_admin(self) -> None:
        admin = AuthenticatedUser(id=uuid4(), email="m@campus.edu", role=UserRole.ADMIN)
        assert await require_admin(admin) is admin

        user = AuthenticatedUser(id=uuid4(), email="u@campus.edu")
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(user)
        assert exc_info.value.status_code == 403


class TestAuthenticatedUser:
    """Tests for AuthenticatedUser."""

    def test_display_name_prefers_name(self) -> None:
        user = AuthenticatedUser(id=uuid4(), email="ana@campus.edu", name="Ana Lima")
        assert user.display_name == "Ana Lima"

    def test_display_name_falls_back_to_email_prefix(self) -> None:
        user = AuthenticatedUser(id=uuid4(), email="ben.k@campus.edu")
        assert user.display_name == "ben.k"
