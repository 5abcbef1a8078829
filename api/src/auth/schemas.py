"""Authenticated identity as seen by the forum."""

from uuid import UUID

from pydantic import BaseModel

from src.auth.permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Identity decoded from the bearer token."""

    id: UUID
    email: str
    role: UserRole = UserRole.USER
    name: str = ""

    @property
    def display_name(self) -> str:
        """Name shown next to posts and comments."""
        return self.name or self.email.split("@")[0]
