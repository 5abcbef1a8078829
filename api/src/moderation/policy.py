"""Moderation policy for posts and comments.

- Edit: only the original author, privileged role included
- Delete: the original author or the privileged role
- Delete is always soft: status becomes ``deleted``; comments also lose
  their content to a fixed tombstone, posts keep theirs
"""

from typing import Any

from src.auth.permissions import is_privileged
from src.auth.schemas import AuthenticatedUser
from src.core.errors import PermissionDeniedError
from src.core.query import EntityStatus
from src.utils.dates import utcnow


COMMENT_TOMBSTONE = "This comment has been deleted"


def ensure_can_edit(entity: Any, actor: AuthenticatedUser, kind: str) -> None:
    """Raise PermissionDeniedError unless ``actor`` authored ``entity``."""
    if entity.author_id != actor.id:
        raise PermissionDeniedError(f"Not authorized to update this {kind}")


def ensure_can_delete(entity: Any, actor: AuthenticatedUser, kind: str) -> None:
    """Raise PermissionDeniedError unless ``actor`` is the author or privileged."""
    if entity.author_id != actor.id and not is_privileged(actor.role):
        raise PermissionDeniedError(f"Not authorized to delete this {kind}")


def soft_delete(entity: Any, tombstone: str | None = None) -> bool:
    """Mark ``entity`` deleted, optionally replacing its content.

    Returns:
        False when the entity was already deleted (nothing changed)
    """
    if entity.status == EntityStatus.DELETED:
        return False

    entity.status = EntityStatus.DELETED
    if tombstone is not None:
        entity.content = tombstone
    entity.updated_at = utcnow()
    return True
