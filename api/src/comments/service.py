"""Comment service layer.

Business logic for:
- Comment CRUD with one level of replies
- Root-comment pagination with replies attached in one batched read
- Like toggling
- Keeping the parent post's comment counter in step

After the insert, every write to a comment row is a conditional update of
its own columns, so a like racing a delete cannot bring the comment back.
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.auth.schemas import AuthenticatedUser
from src.config import Settings, get_settings
from src.core.errors import (
    CommentNotFoundError,
    PostNotFoundError,
    ValidationFailedError,
    WriteConflictError,
)
from src.core.logging import get_logger
from src.core.query import ActiveQuery, EntityStatus, Pagination, paginate
from src.core.ratelimit import check_rate_limit, increment_rate_limit
from src.engagement import LikeResult, toggle_like
from src.moderation import (
    COMMENT_TOMBSTONE,
    ensure_can_delete,
    ensure_can_edit,
    soft_delete,
)
from src.utils.dates import utcnow

from .models import COMMENT_COLUMN_NAMES, Comment, create_comment
from .tree import CommentNode, build_comment_tree


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

    from src.posts.service import PostService


logger = get_logger(__name__)


class CommentService:
    """Service for comment management."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        post_service: "PostService",
        redis: "Redis | None" = None,
        settings: Settings | None = None,
    ):
        """Initialize with Cassandra session, the post service and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.post_service = post_service
        self.redis = redis
        self.settings = settings or get_settings()
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        columns = ", ".join(COMMENT_COLUMN_NAMES)
        markers = ", ".join("?" for _ in COMMENT_COLUMN_NAMES)

        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_id ({columns}) VALUES ({markers})
            IF NOT EXISTS
        """)

        self._insert_comment_by_post = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_post
                (post_id, created_at, comment_id, parent_comment_id)
            VALUES (?, ?, ?, ?)
        """)

        self._insert_reply = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comment_replies
                (parent_comment_id, created_at, comment_id)
            VALUES (?, ?, ?)
        """)

        self._update_comment_content = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments_by_id
            SET content = ?, is_edited = ?, updated_at = ?
            WHERE comment_id = ?
            IF status = ?
        """)

        self._update_comment_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments_by_id
            SET status = ?, content = ?, updated_at = ?
            WHERE comment_id = ?
            IF status = ?
        """)

        self._add_comment_like = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments_by_id
            SET likes = likes + ?, likes_count = ?, updated_at = ?
            WHERE comment_id = ?
            IF status = ? AND likes_count = ?
        """)

        self._remove_comment_like = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments_by_id
            SET likes = likes - ?, likes_count = ?, updated_at = ?
            WHERE comment_id = ?
            IF status = ? AND likes_count = ?
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments_by_id WHERE comment_id = ?
        """)

        self._get_comments_by_ids = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments_by_id WHERE comment_id IN ?
        """)

        self._get_comment_ids_by_post = self.session.prepare(f"""
            SELECT comment_id, parent_comment_id FROM {self.keyspace}.comments_by_post
            WHERE post_id = ?
        """)

        self._get_reply_ids = self.session.prepare(f"""
            SELECT comment_id FROM {self.keyspace}.comment_replies
            WHERE parent_comment_id IN ?
        """)

    # ==========================================================================
    # Storage helpers
    # ==========================================================================

    async def _apply(self, statement: Any, params: list[Any]) -> bool:
        """Run a conditional write; False when its IF clause did not hold."""
        result = await self.session.aexecute(statement, params)
        return result.was_applied

    async def find_comment(self, comment_id: UUID) -> Comment | None:
        """Fetch a comment by id regardless of its status."""
        result = await self.session.aexecute(self._get_comment, [comment_id])
        row = result.one()
        return Comment.from_row(row) if row else None

    async def _comments_by_ids(self, comment_ids: list[UUID]) -> list[Comment]:
        if not comment_ids:
            return []
        rows = await self.session.aexecute(self._get_comments_by_ids, [comment_ids])
        return [Comment.from_row(row) for row in rows]

    async def get_active_comment(self, comment_id: UUID) -> Comment:
        """Fetch an active comment.

        Raises:
            CommentNotFoundError: Missing, deleted or flagged
        """
        comment = await self.find_comment(comment_id)
        if comment is None or comment.status != EntityStatus.ACTIVE:
            raise CommentNotFoundError
        return comment

    # ==========================================================================
    # CRUD
    # ==========================================================================

    async def create_comment(
        self,
        post_id: UUID,
        content: str,
        author_id: UUID,
        author_name: str,
        author_email: str | None = None,
        parent_comment_id: UUID | None = None,
    ) -> Comment:
        """Create a comment, or a reply when ``parent_comment_id`` is set.

        Performs:
        - Post check (must be active)
        - Parent check (active root comment of the same post)
        - Rate limiting check
        - Row insert and index entries, then the post counter increment
        """
        if not content or not content.strip():
            raise ValidationFailedError("Post ID and content are required")

        post = await self.post_service.find_post(post_id)
        if post is None or post.status != EntityStatus.ACTIVE:
            raise PostNotFoundError

        if parent_comment_id is not None:
            parent = await self.find_comment(parent_comment_id)
            if parent is None or parent.status != EntityStatus.ACTIVE:
                raise CommentNotFoundError("Parent comment not found")
            if parent.post_id != post_id:
                raise ValidationFailedError("Parent comment belongs to another post")
            if not parent.is_root:
                raise ValidationFailedError("Replies cannot be replied to")

        await check_rate_limit(
            self.redis, "comment", author_id, self.settings.forum_comments_per_minute
        )

        comment = create_comment(
            post_id=post_id,
            content=content.strip(),
            author_id=author_id,
            author_name=author_name,
            author_email=author_email,
            parent_comment_id=parent_comment_id,
        )
        await self.session.aexecute(self._insert_comment, comment.row_values())
        await self.session.aexecute(
            self._insert_comment_by_post,
            [post_id, comment.created_at, comment.comment_id, parent_comment_id],
        )
        if parent_comment_id is not None:
            await self.session.aexecute(
                self._insert_reply,
                [parent_comment_id, comment.created_at, comment.comment_id],
            )
        # Not atomic with the insert; recount_comments repairs drift
        await self.post_service.increment_comments_count(post_id)
        await increment_rate_limit(self.redis, "comment", author_id)

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            post_id=str(post_id),
            is_reply=parent_comment_id is not None,
        )
        return comment

    async def list_comments(
        self, post_id: UUID, page: int = 1, limit: int = 10
    ) -> tuple[list[CommentNode], Pagination]:
        """Active root comments of a post, newest first, replies attached.

        ``total`` counts root comments only. Replies of the whole page are
        found with a single index query and are never paginated.

        Raises:
            ValidationFailedError: Unknown post
        """
        if await self.post_service.find_post(post_id) is None:
            raise ValidationFailedError("Invalid post ID")

        index = await self.session.aexecute(self._get_comment_ids_by_post, [post_id])
        root_ids = [row.comment_id for row in index if row.parent_comment_id is None]
        roots = ActiveQuery(root_only=True).apply(await self._comments_by_ids(root_ids))
        roots.sort(key=lambda c: c.created_at, reverse=True)
        page_roots, pagination = paginate(roots, page, limit)

        replies: list[Comment] = []
        if page_roots:
            page_ids = [c.comment_id for c in page_roots]
            reply_index = await self.session.aexecute(self._get_reply_ids, [page_ids])
            replies = ActiveQuery(parent_ids=frozenset(page_ids)).apply(
                await self._comments_by_ids([row.comment_id for row in reply_index])
            )

        return build_comment_tree(page_roots, replies), pagination

    async def update_comment(
        self, comment_id: UUID, actor: AuthenticatedUser, content: str
    ) -> Comment:
        """Edit a comment's content. Only the author may."""
        for _ in range(self.settings.forum_write_attempts):
            comment = await self.get_active_comment(comment_id)
            ensure_can_edit(comment, actor, "comment")
            if not content or not content.strip():
                raise ValidationFailedError("Content is required")

            comment.content = content.strip()
            comment.is_edited = True
            comment.updated_at = utcnow()
            applied = await self._apply(
                self._update_comment_content,
                [
                    comment.content,
                    comment.is_edited,
                    comment.updated_at,
                    comment_id,
                    EntityStatus.ACTIVE.value,
                ],
            )
            if applied:
                logger.info("comment_updated", comment_id=str(comment_id))
                return comment

        raise WriteConflictError

    async def delete_comment(self, comment_id: UUID, actor: AuthenticatedUser) -> None:
        """Soft-delete a comment (author or privileged role).

        Content is replaced by the tombstone and the post counter drops by
        one (never below zero). Replies of a deleted root are left as they
        are. Deleting an already deleted comment is a no-op; of two racing
        deletes only the one whose status flip applied touches the counter.
        """
        for _ in range(self.settings.forum_write_attempts):
            comment = await self.find_comment(comment_id)
            if comment is None:
                raise CommentNotFoundError
            ensure_can_delete(comment, actor, "comment")

            previous_status = comment.status
            if not soft_delete(comment, tombstone=COMMENT_TOMBSTONE):
                return

            applied = await self._apply(
                self._update_comment_status,
                [
                    comment.status.value,
                    comment.content,
                    comment.updated_at,
                    comment_id,
                    previous_status.value,
                ],
            )
            if applied:
                break
        else:
            raise WriteConflictError

        await self.post_service.decrement_comments_count(comment.post_id)

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            post_id=str(comment.post_id),
            deleted_by=str(actor.id),
        )

    # ==========================================================================
    # Engagement
    # ==========================================================================

    async def toggle_like(self, comment_id: UUID, actor_id: UUID) -> LikeResult:
        """Like or unlike an active comment.

        Same conditional write as post likes: applied only while the
        comment is active and still holds the count that was read.
        """
        for _ in range(self.settings.forum_write_attempts):
            comment = await self.get_active_comment(comment_id)
            expected_count = comment.likes_count
            result = toggle_like(comment, actor_id)

            statement = (
                self._add_comment_like if result.liked else self._remove_comment_like
            )
            applied = await self._apply(
                statement,
                [
                    {actor_id},
                    result.likes_count,
                    comment.updated_at,
                    comment_id,
                    EntityStatus.ACTIVE.value,
                    expected_count,
                ],
            )
            if applied:
                logger.info(
                    "comment_like_toggled",
                    comment_id=str(comment_id),
                    liked=result.liked,
                    likes_count=result.likes_count,
                )
                return result

        raise WriteConflictError
