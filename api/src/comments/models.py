"""Database models for post comments.

Cassandra table definitions for:
- comments_by_id: O(1) lookup by id, the only copy of a comment's mutable state
- comments_by_post: index of every comment of a post, newest first
- comment_replies: index of replies grouped under their parent, oldest first

Architecture: adjacency list, two levels deep.
- parent_comment_id is NULL for root comments
- a reply references a root comment of the same post
- the index tables hold keys (and the immutable parent id) only; reads
  resolve them against comments_by_id
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.core.query import EntityStatus
from src.utils.dates import ensure_utc_aware, utcnow


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

_COMMENT_COLUMNS = """
    content TEXT,
    author_id UUID,
    author_name TEXT,
    author_email TEXT,
    status TEXT,
    likes SET<UUID>,
    likes_count INT,
    is_edited BOOLEAN,
    updated_at TIMESTAMP,
"""

COMMENTS_BY_ID_TABLE_CQL = f"""
CREATE TABLE IF NOT EXISTS {{keyspace}}.comments_by_id (
    comment_id UUID,
    post_id UUID,
    parent_comment_id UUID,
    created_at TIMESTAMP,
    {_COMMENT_COLUMNS}
    PRIMARY KEY (comment_id)
)
"""

# Root counting/paging and post-level recounts read one partition
COMMENTS_BY_POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_post (
    post_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    parent_comment_id UUID,
    PRIMARY KEY ((post_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id ASC)
"""

# Replies of a whole page of roots are found with one IN query
COMMENT_REPLIES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_replies (
    parent_comment_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    PRIMARY KEY ((parent_comment_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

COMMENT_COLUMN_NAMES = (
    "comment_id",
    "post_id",
    "parent_comment_id",
    "created_at",
    "content",
    "author_id",
    "author_name",
    "author_email",
    "status",
    "likes",
    "likes_count",
    "is_edited",
    "updated_at",
)

COMMENTS_TABLES_CQL = [
    COMMENTS_BY_ID_TABLE_CQL,
    COMMENTS_BY_POST_TABLE_CQL,
    COMMENT_REPLIES_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class Comment:
    """Comment on a post, root or reply."""

    comment_id: UUID
    post_id: UUID
    content: str
    author_id: UUID
    author_name: str
    author_email: str | None
    status: EntityStatus
    created_at: datetime
    updated_at: datetime
    parent_comment_id: UUID | None = None
    likes: set[UUID] = field(default_factory=set)
    likes_count: int = 0
    is_edited: bool = False

    @property
    def is_root(self) -> bool:
        """True for comments attached directly to the post."""
        return self.parent_comment_id is None

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        created_at = ensure_utc_aware(row.created_at)
        return cls(
            comment_id=row.comment_id,
            post_id=row.post_id,
            parent_comment_id=row.parent_comment_id,
            content=row.content,
            author_id=row.author_id,
            author_name=row.author_name or "User",
            author_email=row.author_email,
            status=EntityStatus(row.status or EntityStatus.ACTIVE.value),
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
            likes=set(row.likes or ()),
            likes_count=row.likes_count or 0,
            is_edited=row.is_edited or False,
        )

    def row_values(self) -> dict[str, Any]:
        """Column values of the ``comments_by_id`` row, keyed as COMMENT_COLUMN_NAMES."""
        return {
            "comment_id": self.comment_id,
            "post_id": self.post_id,
            "parent_comment_id": self.parent_comment_id,
            "created_at": self.created_at,
            "content": self.content,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "status": self.status.value,
            "likes": self.likes,
            "likes_count": self.likes_count,
            "is_edited": self.is_edited,
            "updated_at": self.updated_at,
        }


def create_comment(
    post_id: UUID,
    content: str,
    author_id: UUID,
    author_name: str,
    author_email: str | None = None,
    parent_comment_id: UUID | None = None,
) -> Comment:
    """Create a new active comment."""
    now = utcnow()
    return Comment(
        comment_id=uuid4(),
        post_id=post_id,
        parent_comment_id=parent_comment_id,
        content=content,
        author_id=author_id,
        author_name=author_name,
        author_email=author_email,
        status=EntityStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
