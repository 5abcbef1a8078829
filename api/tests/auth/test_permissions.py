"""Tests for forum roles."""

import pytest

from src.auth.permissions import (
    PRIVILEGED_ROLE,
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
    is_privileged,
)


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        """Roles should have correct string values."""
        assert UserRole.USER.value == "user"
        assert UserRole.ADMIN.value == "admin"

    def test_role_hierarchy(self) -> None:
        """Admin ranks above user."""
        assert ROLE_HIERARCHY[UserRole.USER] < ROLE_HIERARCHY[UserRole.ADMIN]

    def test_all_roles_have_levels(self) -> None:
        """All UserRole members should have defined levels."""
        for role in UserRole:
            assert role in ROLE_HIERARCHY

    def test_admin_is_the_privileged_role(self) -> None:
        assert PRIVILEGED_ROLE == UserRole.ADMIN


class TestGetRoleLevel:
    """Tests for get_role_level function."""

    @pytest.mark.parametrize(
        ("role", "expected_level"),
        [
            (UserRole.USER, 0),
            (UserRole.ADMIN, 1),
            ("user", 0),
            ("admin", 1),
        ],
    )
    def test_levels(self, role: UserRole | str, expected_level: int) -> None:
        """Enum and string roles map to the same levels."""
        assert get_role_level(role) == expected_level

    def test_invalid_role_returns_zero(self) -> None:
        """Unknown roles get the lowest level."""
        assert get_role_level("superuser") == 0


class TestHasPermission:
    """Tests for has_permission and is_privileged."""

    def test_admin_has_all_permissions(self) -> None:
        assert has_permission(UserRole.ADMIN, UserRole.USER) is True
        assert has_permission(UserRole.ADMIN, UserRole.ADMIN) is True

    def test_user_permissions(self) -> None:
        assert has_permission(UserRole.USER, UserRole.USER) is True
        assert has_permission(UserRole.USER, UserRole.ADMIN) is False

    def test_string_roles(self) -> None:
        assert has_permission("admin", "user") is True
        assert has_permission("user", "admin") is False

    def test_is_privileged(self) -> None:
        assert is_privileged(UserRole.ADMIN) is True
        assert is_privileged("admin") is True
        assert is_privileged(UserRole.USER) is False
        assert is_privileged("moderator") is False
