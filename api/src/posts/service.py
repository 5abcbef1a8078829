"""Post service layer.

Business logic for:
- Post CRUD with author-only edits and soft deletion
- Listing modes (all, user's own, search, trending)
- Like toggling
- Denormalized comment counter maintenance

Writes to an existing ``posts`` row touch only the columns the operation
owns and are conditional (lightweight transactions). A like, a counter
update and a delete racing on one post therefore never undo each other.
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.auth.schemas import AuthenticatedUser
from src.config import Settings, get_settings
from src.core.errors import PostNotFoundError, ValidationFailedError, WriteConflictError
from src.core.logging import get_logger
from src.core.query import ActiveQuery, EntityStatus, Pagination, paginate
from src.core.ratelimit import check_rate_limit, increment_rate_limit
from src.engagement import LikeResult, toggle_like
from src.moderation import ensure_can_delete, ensure_can_edit, soft_delete
from src.utils.dates import utcnow

from .listing import PostSort, SearchQuery, order_trending, rank_by_relevance, sort_posts
from .models import (
    POST_COLUMN_NAMES,
    Post,
    PostCategory,
    create_post,
    normalize_tags,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = get_logger(__name__)


class PostService:
    """Service for forum posts."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        settings: Settings | None = None,
    ):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.settings = settings or get_settings()
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        columns = ", ".join(POST_COLUMN_NAMES)
        markers = ", ".join("?" for _ in POST_COLUMN_NAMES)

        self._insert_post = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.posts ({columns}) VALUES ({markers})
            IF NOT EXISTS
        """)

        self._insert_post_by_status = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.posts_by_status (status, created_at, post_id)
            VALUES (?, ?, ?)
        """)

        self._insert_post_by_author = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.posts_by_author (author_id, created_at, post_id)
            VALUES (?, ?, ?)
        """)

        self._delete_post_by_status = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.posts_by_status
            WHERE status = ? AND created_at = ? AND post_id = ?
        """)

        self._update_post_fields = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET title = ?, content = ?, tags = ?, category = ?, is_edited = ?,
                updated_at = ?
            WHERE post_id = ?
            IF status = ?
        """)

        self._update_post_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET status = ?, updated_at = ?
            WHERE post_id = ?
            IF status = ?
        """)

        self._add_post_like = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET likes = likes + ?, likes_count = ?, updated_at = ?
            WHERE post_id = ?
            IF status = ? AND likes_count = ?
        """)

        self._remove_post_like = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET likes = likes - ?, likes_count = ?, updated_at = ?
            WHERE post_id = ?
            IF status = ? AND likes_count = ?
        """)

        self._set_comments_count = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET comments_count = ?
            WHERE post_id = ?
            IF comments_count = ?
        """)

        self._get_post = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.posts WHERE post_id = ?
        """)

        self._get_posts_by_ids = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.posts WHERE post_id IN ?
        """)

        self._get_post_ids_by_status = self.session.prepare(f"""
            SELECT post_id FROM {self.keyspace}.posts_by_status WHERE status = ?
        """)

        self._get_post_ids_by_author = self.session.prepare(f"""
            SELECT post_id FROM {self.keyspace}.posts_by_author WHERE author_id = ?
        """)

        self._get_comment_ids = self.session.prepare(f"""
            SELECT comment_id FROM {self.keyspace}.comments_by_post WHERE post_id = ?
        """)

        self._get_comment_statuses = self.session.prepare(f"""
            SELECT status FROM {self.keyspace}.comments_by_id WHERE comment_id IN ?
        """)

    # ==========================================================================
    # Storage helpers
    # ==========================================================================

    async def _apply(self, statement: Any, params: list[Any]) -> bool:
        """Run a conditional write; False when its IF clause did not hold."""
        result = await self.session.aexecute(statement, params)
        return result.was_applied

    async def find_post(self, post_id: UUID) -> Post | None:
        """Fetch a post by id regardless of its status."""
        result = await self.session.aexecute(self._get_post, [post_id])
        row = result.one()
        return Post.from_row(row) if row else None

    async def _posts_by_ids(self, post_ids: list[UUID]) -> list[Post]:
        if not post_ids:
            return []
        rows = await self.session.aexecute(self._get_posts_by_ids, [post_ids])
        return [Post.from_row(row) for row in rows]

    async def _active_posts(self, query: ActiveQuery) -> list[Post]:
        """Posts of the active index narrowed by ``query``.

        Status is checked again on the ``posts`` rows, so an index entry
        left behind by an interrupted delete is never listed.
        """
        rows = await self.session.aexecute(
            self._get_post_ids_by_status, [EntityStatus.ACTIVE.value]
        )
        return query.apply(await self._posts_by_ids([row.post_id for row in rows]))

    async def get_active_post(self, post_id: UUID) -> Post:
        """Fetch an active post.

        Raises:
            PostNotFoundError: Missing, deleted or flagged
        """
        post = await self.find_post(post_id)
        if post is None or post.status != EntityStatus.ACTIVE:
            raise PostNotFoundError
        return post

    # ==========================================================================
    # CRUD
    # ==========================================================================

    async def create_post(
        self,
        title: str,
        content: str,
        author_id: UUID,
        author_name: str,
        author_email: str | None = None,
        tags: list[str] | None = None,
        category: str | None = None,
    ) -> Post:
        """Create a new post.

        Performs:
        - Required field check
        - Rate limiting check
        - Tag normalization
        - Row insert, then the status and author index entries
        """
        if not title or not title.strip() or not content or not content.strip():
            raise ValidationFailedError("Title and content are required")

        await check_rate_limit(
            self.redis, "post", author_id, self.settings.forum_posts_per_minute
        )

        post = create_post(
            title=title.strip(),
            content=content.strip(),
            author_id=author_id,
            author_name=author_name,
            author_email=author_email,
            tags=normalize_tags(
                tags, self.settings.forum_max_tags, self.settings.forum_max_tag_length
            ),
            category=category or PostCategory.GENERAL.value,
        )
        await self.session.aexecute(self._insert_post, post.row_values())
        await self.session.aexecute(
            self._insert_post_by_status,
            [post.status.value, post.created_at, post.post_id],
        )
        await self.session.aexecute(
            self._insert_post_by_author, [author_id, post.created_at, post.post_id]
        )
        await increment_rate_limit(self.redis, "post", author_id)

        logger.info("post_created", post_id=str(post.post_id), author_id=str(author_id))
        return post

    async def get_post(self, post_id: UUID) -> Post:
        """Post detail (active posts only)."""
        return await self.get_active_post(post_id)

    async def update_post(
        self,
        post_id: UUID,
        actor: AuthenticatedUser,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
        category: str | None = None,
    ) -> Post:
        """Update a post; only its author may.

        Omitted or empty fields keep their previous value. Likes and the
        comment counter are not written.
        """
        for _ in range(self.settings.forum_write_attempts):
            post = await self.get_active_post(post_id)
            ensure_can_edit(post, actor, "post")

            if title and title.strip():
                post.title = title.strip()
            if content and content.strip():
                post.content = content.strip()
            if tags is not None:
                post.tags = normalize_tags(
                    tags, self.settings.forum_max_tags, self.settings.forum_max_tag_length
                )
            if category:
                post.category = category
            post.is_edited = True
            post.updated_at = utcnow()

            applied = await self._apply(
                self._update_post_fields,
                [
                    post.title,
                    post.content,
                    post.tags,
                    post.category,
                    post.is_edited,
                    post.updated_at,
                    post_id,
                    EntityStatus.ACTIVE.value,
                ],
            )
            if applied:
                logger.info("post_updated", post_id=str(post_id))
                return post

        raise WriteConflictError

    async def delete_post(self, post_id: UUID, actor: AuthenticatedUser) -> None:
        """Soft-delete a post (author or privileged role).

        Content is kept; comments are not touched. Deleting an already
        deleted post is a no-op. The status flip is conditional on the
        status that was read, so exactly one of two racing deletes moves
        the index entry.
        """
        for _ in range(self.settings.forum_write_attempts):
            post = await self.find_post(post_id)
            if post is None:
                raise PostNotFoundError
            ensure_can_delete(post, actor, "post")

            previous_status = post.status
            if not soft_delete(post):
                return

            applied = await self._apply(
                self._update_post_status,
                [post.status.value, post.updated_at, post_id, previous_status.value],
            )
            if applied:
                break
        else:
            raise WriteConflictError

        await self.session.aexecute(
            self._delete_post_by_status,
            [previous_status.value, post.created_at, post_id],
        )
        await self.session.aexecute(
            self._insert_post_by_status, [post.status.value, post.created_at, post_id]
        )

        logger.info(
            "post_deleted",
            post_id=str(post_id),
            deleted_by=str(actor.id),
            by_author=post.author_id == actor.id,
        )

    # ==========================================================================
    # Listings
    # ==========================================================================

    async def list_posts(
        self,
        page: int = 1,
        limit: int = 10,
        sort: PostSort = PostSort.NEWEST,
        category: str | None = None,
        tag: str | None = None,
    ) -> tuple[list[Post], Pagination]:
        """Active posts, optionally filtered by category and exact tag."""
        posts = await self._active_posts(
            ActiveQuery(
                category=category or None,
                tag=tag.strip().lower() if tag and tag.strip() else None,
            )
        )
        return paginate(sort_posts(posts, sort), page, limit)

    async def list_user_posts(
        self, author_id: UUID, page: int = 1, limit: int = 10
    ) -> tuple[list[Post], Pagination]:
        """The author's own active posts, newest first."""
        rows = await self.session.aexecute(self._get_post_ids_by_author, [author_id])
        posts = ActiveQuery(author_id=author_id).apply(
            await self._posts_by_ids([row.post_id for row in rows])
        )
        return paginate(sort_posts(posts, PostSort.NEWEST), page, limit)

    async def search_posts(
        self, q: str | None, page: int = 1, limit: int = 10
    ) -> tuple[list[Post], Pagination]:
        """Active posts matching ``q``, most relevant first.

        Raises:
            ValidationFailedError: Empty or missing query
        """
        if not q or not q.strip():
            raise ValidationFailedError("Search query is required")

        query = SearchQuery.parse(q)
        if query.is_empty:
            return paginate([], page, limit)

        posts = await self._active_posts(ActiveQuery())
        return paginate(rank_by_relevance(posts, query), page, limit)

    async def trending_posts(
        self, page: int = 1, limit: int = 10
    ) -> tuple[list[Post], Pagination]:
        """Active posts from the trending window ranked by engagement."""
        since = utcnow() - timedelta(days=self.settings.forum_trending_window_days)
        posts = await self._active_posts(ActiveQuery(created_since=since))
        return paginate(order_trending(posts), page, limit)

    # ==========================================================================
    # Engagement
    # ==========================================================================

    async def toggle_like(self, post_id: UUID, actor_id: UUID) -> LikeResult:
        """Like or unlike an active post.

        The actor is added to or removed from the stored set and the new
        count is written with it, provided the post is still active and
        its count is the one that was read. Otherwise the post is read
        again and the toggle recomputed.

        Raises:
            PostNotFoundError: Missing, deleted or flagged
            WriteConflictError: Still contended after the configured attempts
        """
        for _ in range(self.settings.forum_write_attempts):
            post = await self.get_active_post(post_id)
            expected_count = post.likes_count
            result = toggle_like(post, actor_id)

            statement = self._add_post_like if result.liked else self._remove_post_like
            applied = await self._apply(
                statement,
                [
                    {actor_id},
                    result.likes_count,
                    post.updated_at,
                    post_id,
                    EntityStatus.ACTIVE.value,
                    expected_count,
                ],
            )
            if applied:
                logger.info(
                    "post_like_toggled",
                    post_id=str(post_id),
                    liked=result.liked,
                    likes_count=result.likes_count,
                )
                return result

        raise WriteConflictError

    # ==========================================================================
    # Comment counter
    # ==========================================================================

    async def increment_comments_count(self, post_id: UUID) -> None:
        """Count one more comment on the post."""
        await self._shift_comments_count(post_id, 1)

    async def decrement_comments_count(self, post_id: UUID) -> None:
        """Count one comment less on the post, never going below zero."""
        await self._shift_comments_count(post_id, -1)

    async def _shift_comments_count(self, post_id: UUID, delta: int) -> None:
        """Compare-and-set ``comments_count``; missing posts are ignored.

        A counter that stays contended is left for recount_comments to
        repair rather than failing the comment write that caused it.
        """
        for _ in range(self.settings.forum_write_attempts):
            post = await self.find_post(post_id)
            if post is None:
                return
            count = max(0, post.comments_count + delta)
            if count == post.comments_count:
                return
            if await self._apply(
                self._set_comments_count, [count, post_id, post.comments_count]
            ):
                return

        logger.warning("post_comments_count_contended", post_id=str(post_id), delta=delta)

    async def recount_comments(self, post_id: UUID) -> Post:
        """Recompute ``comments_count`` from the post's active comments.

        Repairs drift left by a failure between a comment write and the
        counter update.
        """
        for _ in range(self.settings.forum_write_attempts):
            post = await self.find_post(post_id)
            if post is None:
                raise PostNotFoundError

            active = await self._count_active_comments(post_id)
            if active == post.comments_count:
                return post

            logger.warning(
                "post_comments_count_drift",
                post_id=str(post_id),
                stored=post.comments_count,
                actual=active,
            )
            if await self._apply(
                self._set_comments_count, [active, post_id, post.comments_count]
            ):
                post.comments_count = active
                return post

        raise WriteConflictError

    async def _count_active_comments(self, post_id: UUID) -> int:
        rows = await self.session.aexecute(self._get_comment_ids, [post_id])
        comment_ids = [row.comment_id for row in rows]
        if not comment_ids:
            return 0
        statuses = await self.session.aexecute(self._get_comment_statuses, [comment_ids])
        return sum(1 for row in statuses if row.status == EntityStatus.ACTIVE.value)
