"""Comment API endpoints.

Mounted under the posts prefix:
- POST   /v1/posts/comments               create comment or reply
- GET    /v1/posts/{post_id}/comments     root comments with replies
- PUT    /v1/posts/comments/{comment_id}  edit (author only)
- DELETE /v1/posts/comments/{comment_id}  soft-delete (author or admin)
- POST   /v1/posts/comments/{comment_id}/like
"""

from uuid import UUID

from fastapi import APIRouter, status

from src.auth.dependencies import CurrentUser
from src.core.errors import ForumError, handle_forum_error
from src.posts.dependencies import PageParamsDep
from src.posts.schemas import LikeResponse, MessageResponse

from .dependencies import CommentServiceDep
from .schemas import (
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)


router = APIRouter(prefix="/v1/posts", tags=["comments"])


@router.post(
    "/comments",
    response_model=CommentEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentEnvelope:
    """Comment on a post, or reply to a root comment.

    Rate limited per user per minute.
    """
    try:
        comment = await comment_service.create_comment(
            post_id=data.post_id,
            content=data.content,
            author_id=user.id,
            author_name=user.display_name,
            author_email=user.email or None,
            parent_comment_id=data.parent_comment_id,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return CommentEnvelope(comment=CommentResponse.from_comment(comment))


@router.get(
    "/{post_id}/comments",
    response_model=CommentListResponse,
    summary="List comments",
)
async def list_comments(
    post_id: UUID,
    comment_service: CommentServiceDep,
    paging: PageParamsDep,
) -> CommentListResponse:
    """Newest root comments first, each with all of its replies."""
    try:
        nodes, pagination = await comment_service.list_comments(
            post_id, page=paging.page, limit=paging.limit
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return CommentListResponse(
        comments=[CommentResponse.from_node(node) for node in nodes],
        pagination=pagination,
    )


@router.put(
    "/comments/{comment_id}",
    response_model=CommentEnvelope,
    summary="Update comment",
)
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentEnvelope:
    """Edit a comment. Only the author can edit."""
    try:
        comment = await comment_service.update_comment(comment_id, user, data.content)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return CommentEnvelope(comment=CommentResponse.from_comment(comment))


@router.delete(
    "/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Soft-delete a comment. Author or admin."""
    try:
        await comment_service.delete_comment(comment_id, user)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return MessageResponse(message="Comment deleted successfully")


@router.post(
    "/comments/{comment_id}/like",
    response_model=LikeResponse,
    summary="Like or unlike comment",
)
async def toggle_comment_like(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> LikeResponse:
    """Toggle the authenticated user's like on a comment."""
    try:
        result = await comment_service.toggle_like(comment_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return LikeResponse(liked=result.liked, likes_count=result.likes_count)
