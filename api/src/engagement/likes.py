"""Like toggling.

The like-set is the source of truth. ``likes_count`` is recomputed from it on
every toggle and stored in the same conditional write as the set change; it is
never adjusted on its own.
"""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from src.utils.dates import utcnow


class Likeable(Protocol):
    """Entity carrying a like-set and its denormalized size."""

    likes: set[UUID]
    likes_count: int


@dataclass(frozen=True)
class LikeResult:
    """Outcome of a toggle: new liked state of the actor and refreshed count."""

    liked: bool
    likes_count: int


def toggle_like(target: Likeable, actor_id: UUID) -> LikeResult:
    """Flip ``actor_id``'s membership in ``target``'s like-set.

    Present -> removed (unlike), absent -> added (like). Mutates ``target``.
    """
    if actor_id in target.likes:
        target.likes.discard(actor_id)
        liked = False
    else:
        target.likes.add(actor_id)
        liked = True

    target.likes_count = len(target.likes)
    if hasattr(target, "updated_at"):
        target.updated_at = utcnow()

    return LikeResult(liked=liked, likes_count=target.likes_count)
