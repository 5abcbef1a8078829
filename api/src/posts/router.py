"""Post API endpoints.

Provides routes for:
- Post CRUD (create, read, update, soft-delete)
- Listings (all, trending, search, user's own)
- Like toggling
- Comment counter repair (admin)

Static paths (``/trending``, ``/search``, ``/user``) are declared before
``/{post_id}``.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from src.auth.dependencies import AdminUser, CurrentUser
from src.core.errors import ForumError, handle_forum_error
from src.core.logging import get_logger

from .dependencies import PageParamsDep, PostServiceDep
from .listing import PostSort
from .models import PostCategory
from .schemas import (
    CreatePostRequest,
    LikeResponse,
    MessageResponse,
    PostEnvelope,
    PostListResponse,
    PostResponse,
    UpdatePostRequest,
)


logger = get_logger(__name__)


router = APIRouter(prefix="/v1/posts", tags=["posts"])


def _list_response(result: tuple) -> PostListResponse:
    posts, pagination = result
    return PostListResponse(
        posts=[PostResponse.from_post(p) for p in posts],
        pagination=pagination,
    )


@router.post(
    "",
    response_model=PostEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
)
async def create_post(
    data: CreatePostRequest,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> PostEnvelope:
    """Create a new post as the authenticated user.

    Rate limited per user per minute.
    """
    try:
        post = await post_service.create_post(
            title=data.title,
            content=data.content,
            author_id=user.id,
            author_name=user.display_name,
            author_email=user.email or None,
            tags=data.tags,
            category=data.category.value,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return PostEnvelope(post=PostResponse.from_post(post))


@router.get(
    "",
    response_model=PostListResponse,
    summary="List posts",
)
async def list_posts(
    post_service: PostServiceDep,
    paging: PageParamsDep,
    sort: PostSort = PostSort.NEWEST,
    category: PostCategory | None = None,
    tag: str | None = Query(None, max_length=100),
) -> PostListResponse:
    """List active posts with optional category/tag filters."""
    return _list_response(
        await post_service.list_posts(
            page=paging.page,
            limit=paging.limit,
            sort=sort,
            category=category.value if category else None,
            tag=tag,
        )
    )


@router.get(
    "/trending",
    response_model=PostListResponse,
    summary="Trending posts",
)
async def trending_posts(
    post_service: PostServiceDep,
    paging: PageParamsDep,
) -> PostListResponse:
    """Posts from the last days ranked by likes, comments, then recency."""
    return _list_response(
        await post_service.trending_posts(page=paging.page, limit=paging.limit)
    )


@router.get(
    "/search",
    response_model=PostListResponse,
    summary="Search posts",
)
async def search_posts(
    post_service: PostServiceDep,
    paging: PageParamsDep,
    q: str | None = Query(None, max_length=500),
) -> PostListResponse:
    """Full-text search over title, tags and content."""
    try:
        return _list_response(
            await post_service.search_posts(q, page=paging.page, limit=paging.limit)
        )
    except ForumError as e:
        raise handle_forum_error(e) from e


@router.get(
    "/user",
    response_model=PostListResponse,
    summary="My posts",
)
async def list_user_posts(
    post_service: PostServiceDep,
    paging: PageParamsDep,
    user: CurrentUser,
) -> PostListResponse:
    """The authenticated user's own active posts."""
    return _list_response(
        await post_service.list_user_posts(
            user.id, page=paging.page, limit=paging.limit
        )
    )


@router.get(
    "/{post_id}",
    response_model=PostEnvelope,
    summary="Get post",
)
async def get_post(post_id: UUID, post_service: PostServiceDep) -> PostEnvelope:
    """Post detail."""
    try:
        post = await post_service.get_post(post_id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return PostEnvelope(post=PostResponse.from_post(post))


@router.put(
    "/{post_id}",
    response_model=PostEnvelope,
    summary="Update post",
)
async def update_post(
    post_id: UUID,
    data: UpdatePostRequest,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> PostEnvelope:
    """Update a post. Only the author can edit."""
    try:
        post = await post_service.update_post(
            post_id,
            user,
            title=data.title,
            content=data.content,
            tags=data.tags,
            category=data.category.value if data.category else None,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return PostEnvelope(post=PostResponse.from_post(post))


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    summary="Delete post",
)
async def delete_post(
    post_id: UUID,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Soft-delete a post. Author or admin."""
    try:
        await post_service.delete_post(post_id, user)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return MessageResponse(message="Post deleted successfully")


@router.post(
    "/{post_id}/like",
    response_model=LikeResponse,
    summary="Like or unlike post",
)
async def toggle_post_like(
    post_id: UUID,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> LikeResponse:
    """Toggle the authenticated user's like on a post."""
    try:
        result = await post_service.toggle_like(post_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return LikeResponse(liked=result.liked, likes_count=result.likes_count)


@router.post(
    "/{post_id}/recount-comments",
    response_model=PostEnvelope,
    summary="Recount post comments (admin)",
)
async def recount_comments(
    post_id: UUID,
    post_service: PostServiceDep,
    admin: AdminUser,
) -> PostEnvelope:
    """Recompute the comment counter from the post's active comments."""
    try:
        post = await post_service.recount_comments(post_id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    logger.info("post_comments_recounted", post_id=str(post_id), admin_id=str(admin.id))
    return PostEnvelope(post=PostResponse.from_post(post))
