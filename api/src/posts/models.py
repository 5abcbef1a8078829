"""Database models for forum posts.

Cassandra table definitions for:
- posts: O(1) lookup by id, the only copy of a post's mutable state
- posts_by_status: listing index (only ``active`` is read)
- posts_by_author: index of a user's own posts

The two index tables hold keys only. Listings resolve them against
``posts``, so a stale index entry never shows a stale row: ``status`` is
always checked on the ``posts`` copy. Every write to ``posts`` after the
initial insert is a conditional update of the columns it changes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from src.core.query import EntityStatus
from src.utils.dates import ensure_utc_aware, utcnow


class PostCategory(str, Enum):
    """Fixed set of forum categories."""

    GENERAL = "General"
    ACADEMICS = "Academics"
    EVENTS = "Events"
    CLUBS = "Clubs"
    CAREER = "Career"
    CAMPUS_LIFE = "Campus Life"
    HELP = "Help"
    OTHER = "Other"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

_POST_COLUMNS = """
    title TEXT,
    content TEXT,
    author_id UUID,
    author_name TEXT,
    author_email TEXT,
    tags LIST<TEXT>,
    category TEXT,
    likes SET<UUID>,
    likes_count INT,
    comments_count INT,
    is_edited BOOLEAN,
    updated_at TIMESTAMP,
"""

POST_TABLE_CQL = f"""
CREATE TABLE IF NOT EXISTS {{keyspace}}.posts (
    post_id UUID,
    status TEXT,
    created_at TIMESTAMP,
    {_POST_COLUMNS}
    PRIMARY KEY (post_id)
)
"""

# Partition by status; listings only ever read 'active'
POSTS_BY_STATUS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts_by_status (
    status TEXT,
    created_at TIMESTAMP,
    post_id UUID,
    PRIMARY KEY ((status), created_at, post_id)
) WITH CLUSTERING ORDER BY (created_at DESC, post_id ASC)
"""

POSTS_BY_AUTHOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts_by_author (
    author_id UUID,
    created_at TIMESTAMP,
    post_id UUID,
    PRIMARY KEY ((author_id), created_at, post_id)
) WITH CLUSTERING ORDER BY (created_at DESC, post_id ASC)
"""

POST_COLUMN_NAMES = (
    "post_id",
    "status",
    "created_at",
    "title",
    "content",
    "author_id",
    "author_name",
    "author_email",
    "tags",
    "category",
    "likes",
    "likes_count",
    "comments_count",
    "is_edited",
    "updated_at",
)

POSTS_TABLES_CQL = [
    POST_TABLE_CQL,
    POSTS_BY_STATUS_TABLE_CQL,
    POSTS_BY_AUTHOR_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class Post:
    """Forum post."""

    post_id: UUID
    title: str
    content: str
    author_id: UUID
    author_name: str
    author_email: str | None
    tags: list[str]
    category: str
    status: EntityStatus
    created_at: datetime
    updated_at: datetime
    likes: set[UUID] = field(default_factory=set)
    likes_count: int = 0
    comments_count: int = 0
    is_edited: bool = False

    @classmethod
    def from_row(cls, row: Any) -> "Post":
        """Create Post from Cassandra row."""
        created_at = ensure_utc_aware(row.created_at)
        return cls(
            post_id=row.post_id,
            title=row.title,
            content=row.content,
            author_id=row.author_id,
            author_name=row.author_name or "User",
            author_email=row.author_email,
            tags=list(row.tags or []),
            category=row.category or PostCategory.GENERAL.value,
            status=EntityStatus(row.status or EntityStatus.ACTIVE.value),
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
            likes=set(row.likes or ()),
            likes_count=row.likes_count or 0,
            comments_count=row.comments_count or 0,
            is_edited=row.is_edited or False,
        )

    def row_values(self) -> dict[str, Any]:
        """Column values of the ``posts`` row, keyed as POST_COLUMN_NAMES."""
        return {
            "post_id": self.post_id,
            "status": self.status.value,
            "created_at": self.created_at,
            "title": self.title,
            "content": self.content,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "tags": self.tags,
            "category": self.category,
            "likes": self.likes,
            "likes_count": self.likes_count,
            "comments_count": self.comments_count,
            "is_edited": self.is_edited,
            "updated_at": self.updated_at,
        }


def normalize_tags(tags: list[str] | None, max_tags: int, max_length: int) -> list[str]:
    """Trim, lower-case and de-duplicate tags, keeping first occurrences.

    Blank tags are dropped, tags are cut to ``max_length`` and the list to
    ``max_tags``.
    """
    normalized: list[str] = []
    for raw in tags or []:
        tag = raw.strip().lower()[:max_length].strip()
        if tag and tag not in normalized:
            normalized.append(tag)
    return normalized[:max_tags]


def create_post(
    title: str,
    content: str,
    author_id: UUID,
    author_name: str,
    author_email: str | None = None,
    tags: list[str] | None = None,
    category: str = PostCategory.GENERAL.value,
) -> Post:
    """Create a new active post with zeroed counters."""
    now = utcnow()
    return Post(
        post_id=uuid4(),
        title=title,
        content=content,
        author_id=author_id,
        author_name=author_name,
        author_email=author_email,
        tags=list(tags or []),
        category=category,
        status=EntityStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
