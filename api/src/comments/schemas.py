"""Pydantic schemas for comments.

Request/Response models with validation for:
- Comment create/update
- Comment detail with nested replies
- Paginated root-comment listing
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from src.core.query import Pagination
from src.posts.schemas import AuthorResponse, CamelModel

from .tree import CommentNode


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(CamelModel):
    """Request to create a comment or, with ``parentCommentId``, a reply."""

    post_id: UUID
    content: str = Field(..., max_length=10000)
    parent_comment_id: UUID | None = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


class UpdateCommentRequest(CamelModel):
    """Request to edit a comment."""

    content: str = Field(..., max_length=10000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(CamelModel):
    """A single comment; roots carry their replies."""

    id: UUID
    post_id: UUID
    parent_comment_id: UUID | None = None
    content: str
    author: AuthorResponse
    likes: list[UUID] = Field(default_factory=list)
    likes_count: int = 0
    is_edited: bool = False
    status: str
    created_at: datetime
    updated_at: datetime
    replies: list["CommentResponse"] = Field(default_factory=list)

    @classmethod
    def from_comment(
        cls, comment: Any, replies: list["CommentResponse"] | None = None
    ) -> "CommentResponse":
        """Create response from Comment entity."""
        return cls(
            id=comment.comment_id,
            post_id=comment.post_id,
            parent_comment_id=comment.parent_comment_id,
            content=comment.content,
            author=AuthorResponse(
                id=comment.author_id,
                name=comment.author_name,
                email=comment.author_email,
            ),
            likes=sorted(comment.likes, key=str),
            likes_count=comment.likes_count,
            is_edited=comment.is_edited,
            status=comment.status.value,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            replies=replies or [],
        )

    @classmethod
    def from_node(cls, node: CommentNode) -> "CommentResponse":
        """Create response from a tree node, replies included."""
        return cls.from_comment(
            node.comment, [cls.from_node(child) for child in node.replies]
        )


class CommentEnvelope(CamelModel):
    """``{success, comment}``"""

    success: bool = True
    comment: CommentResponse


class CommentListResponse(CamelModel):
    """``{success, comments, pagination}``; ``total`` counts root comments."""

    success: bool = True
    comments: list[CommentResponse]
    pagination: Pagination
