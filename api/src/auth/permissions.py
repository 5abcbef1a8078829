"""Role-based access control for the forum.

Hierarchical roles:
- ADMIN (level 1): may moderate (soft-delete) any post or comment
- USER (level 0): may manage only what they authored
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    USER = "user"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.ADMIN: 1,
}

# Role allowed to delete entities authored by someone else
PRIVILEGED_ROLE = UserRole.ADMIN


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Unknown roles get level 0.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.USER)
        True
        >>> has_permission("user", "admin")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_privileged(role: UserRole | str) -> bool:
    """Check if role may moderate content of other authors."""
    return has_permission(role, PRIVILEGED_ROLE)
