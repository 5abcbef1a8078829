"""Edit/delete authorization and soft-delete rules."""

from .policy import (
    COMMENT_TOMBSTONE,
    ensure_can_delete,
    ensure_can_edit,
    soft_delete,
)


__all__ = [
    "COMMENT_TOMBSTONE",
    "ensure_can_delete",
    "ensure_can_edit",
    "soft_delete",
]
