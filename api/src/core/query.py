"""Shared read-path helpers: lifecycle status, active filtering, pagination.

Cassandra can only serve posts and comments by partition, so filtering by
category/tag/window, ordering by counters and page slicing happen here.
Every read path goes through ``ActiveQuery`` which never lets a deleted or
flagged entity through.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel

from src.utils.dates import ensure_utc_aware


T = TypeVar("T")


class EntityStatus(str, Enum):
    """Lifecycle state of a post or comment."""

    ACTIVE = "active"
    DELETED = "deleted"
    FLAGGED = "flagged"


@dataclass(frozen=True)
class ActiveQuery:
    """Filter over active entities.

    Attributes:
        author_id: Only entities written by this user.
        category: Only posts in this category.
        tag: Only posts carrying this exact tag.
        created_since: Only entities created at or after this instant.
        root_only: Only comments without a parent comment.
        parent_ids: Only comments whose parent is one of these ids.
    """

    author_id: UUID | None = None
    category: str | None = None
    tag: str | None = None
    created_since: datetime | None = None
    root_only: bool = False
    parent_ids: frozenset[UUID] | None = None

    def matches(self, item: Any) -> bool:
        """Check a single entity against the filter."""
        if item.status != EntityStatus.ACTIVE:
            return False
        if self.author_id is not None and item.author_id != self.author_id:
            return False
        if self.category is not None and item.category != self.category:
            return False
        if self.tag is not None and self.tag not in item.tags:
            return False
        if self.created_since is not None and (
            ensure_utc_aware(item.created_at) < ensure_utc_aware(self.created_since)
        ):
            return False
        if self.root_only and item.parent_comment_id is not None:
            return False
        return not (
            self.parent_ids is not None
            and item.parent_comment_id not in self.parent_ids
        )

    def apply(self, items: Iterable[T]) -> list[T]:
        """Return the matching entities, preserving order."""
        return [item for item in items if self.matches(item)]


class Pagination(BaseModel):
    """Pagination summary returned with every listing."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Summary for ``total`` items split in pages of ``limit``.

        There is always at least one (possibly empty) page.
        """
        return cls(page=page, limit=limit, total=total, pages=page_count(total, limit))


def page_count(total: int, limit: int) -> int:
    """Number of pages for ``total`` items, never less than one."""
    return max(1, math.ceil(total / limit))


def paginate(items: list[T], page: int, limit: int) -> tuple[list[T], Pagination]:
    """Slice one page out of an already filtered and ordered list.

    Args:
        items: Every matching item, in display order
        page: 1-based page number
        limit: Page size

    Returns:
        Tuple of (page items, pagination summary)
    """
    skip = (page - 1) * limit
    return items[skip : skip + limit], Pagination.build(page, limit, len(items))
