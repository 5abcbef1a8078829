"""Pydantic schemas for forum posts.

Request/Response models with validation for:
- Post create/update
- Post detail and listing envelopes
- Like toggle results

JSON bodies use camelCase (``likesCount``, ``isEdited``); Python code uses
the snake_case attribute names.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.core.query import Pagination

from .models import PostCategory


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreatePostRequest(CamelModel):
    """Request to create a post."""

    title: str = Field(..., max_length=200)
    content: str = Field(..., max_length=20000)
    tags: list[str] = Field(default_factory=list)
    category: PostCategory = PostCategory.GENERAL

    @field_validator("title", "content")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Strip whitespace; blank is treated as missing."""
        v = v.strip()
        if not v:
            msg = "Title and content are required"
            raise ValueError(msg)
        return v


class UpdatePostRequest(CamelModel):
    """Request to update a post. Omitted or empty fields keep their value."""

    title: str | None = Field(None, max_length=200)
    content: str | None = Field(None, max_length=20000)
    tags: list[str] | None = None
    category: PostCategory | None = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        """Strip whitespace and fold blank to None."""
        if v is None:
            return None
        return v.strip() or None


# ==============================================================================
# Response Schemas
# ==============================================================================


class AuthorResponse(CamelModel):
    """Author information attached to posts and comments."""

    id: UUID
    name: str
    email: str | None = None


class PostResponse(CamelModel):
    """A single post."""

    id: UUID
    title: str
    content: str
    author: AuthorResponse
    tags: list[str] = Field(default_factory=list)
    category: str
    likes: list[UUID] = Field(default_factory=list)
    likes_count: int = 0
    comments_count: int = 0
    is_edited: bool = False
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: Any) -> "PostResponse":
        """Create response from Post entity."""
        return cls(
            id=post.post_id,
            title=post.title,
            content=post.content,
            author=AuthorResponse(
                id=post.author_id,
                name=post.author_name,
                email=post.author_email,
            ),
            tags=list(post.tags),
            category=post.category,
            likes=sorted(post.likes, key=str),
            likes_count=post.likes_count,
            comments_count=post.comments_count,
            is_edited=post.is_edited,
            status=post.status.value,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostEnvelope(CamelModel):
    """``{success, post}``"""

    success: bool = True
    post: PostResponse


class PostListResponse(CamelModel):
    """``{success, posts, pagination}``"""

    success: bool = True
    posts: list[PostResponse]
    pagination: Pagination


class LikeResponse(CamelModel):
    """``{success, liked, likesCount}``"""

    success: bool = True
    liked: bool
    likes_count: int


class MessageResponse(CamelModel):
    """``{success, message}``"""

    success: bool = True
    message: str
