"""Local view state and its reconciliation with server responses.

After each mutating call the state is brought to what a full refetch would
return, using only the server's response:
- likes: membership and count come from the returned liked flag and count
- new comment: roots are prepended, replies appended to their parent
- edit: the entity is replaced wherever it sits (root list or reply list)
- delete: the entity is removed wherever it sits
Counters never drop below zero. The comment pagination ``total`` counts root
comments only, so replies never move it.
"""

from dataclasses import dataclass, field
from uuid import UUID

from src.comments.schemas import CommentResponse
from src.core.query import Pagination
from src.posts.schemas import PostResponse


def _set_membership(likes: list[UUID], actor_id: UUID, liked: bool) -> list[UUID]:
    others = [user_id for user_id in likes if user_id != actor_id]
    return [*others, actor_id] if liked else others


def _with_total(pagination: Pagination | None, delta: int) -> Pagination | None:
    if pagination is None:
        return None
    return Pagination.build(
        pagination.page, pagination.limit, max(0, pagination.total + delta)
    )


@dataclass
class PostDetailState:
    """A post page: the post, its root comments with replies, pagination."""

    post: PostResponse | None = None
    comments: list[CommentResponse] = field(default_factory=list)
    pagination: Pagination | None = None

    def _adjust_comment_count(self, delta: int) -> None:
        if self.post is not None:
            self.post.comments_count = max(0, self.post.comments_count + delta)

    def _find_comment(self, comment_id: UUID) -> CommentResponse | None:
        for root in self.comments:
            if root.id == comment_id:
                return root
            for reply in root.replies:
                if reply.id == comment_id:
                    return reply
        return None

    def apply_post_loaded(self, post: PostResponse) -> None:
        self.post = post

    def apply_comments_page(
        self, comments: list[CommentResponse], pagination: Pagination
    ) -> None:
        """Page 1 replaces the list, later pages append to it."""
        if pagination.page <= 1:
            self.comments = list(comments)
        else:
            known = {c.id for c in self.comments}
            self.comments.extend(c for c in comments if c.id not in known)
        self.pagination = pagination

    def apply_post_like(self, actor_id: UUID, liked: bool, likes_count: int) -> None:
        if self.post is None:
            return
        self.post.likes = _set_membership(self.post.likes, actor_id, liked)
        self.post.likes_count = likes_count

    def apply_post_updated(self, post: PostResponse) -> None:
        """Merge the returned post and mark it edited."""
        self.post = post.model_copy(update={"is_edited": True})

    def apply_comment_like(
        self, comment_id: UUID, actor_id: UUID, liked: bool, likes_count: int
    ) -> None:
        comment = self._find_comment(comment_id)
        if comment is None:
            return
        comment.likes = _set_membership(comment.likes, actor_id, liked)
        comment.likes_count = likes_count

    def apply_comment_created(self, comment: CommentResponse) -> None:
        """Prepend a root comment or append a reply under its parent."""
        if comment.parent_comment_id is None:
            self.comments.insert(0, comment)
            self.pagination = _with_total(self.pagination, 1)
        else:
            for root in self.comments:
                if root.id == comment.parent_comment_id:
                    root.replies.append(comment)
                    break
        self._adjust_comment_count(1)

    def apply_comment_updated(self, comment: CommentResponse) -> None:
        """Replace the edited comment; an edited root keeps its loaded replies."""
        for index, root in enumerate(self.comments):
            if root.id == comment.id:
                self.comments[index] = comment.model_copy(
                    update={"replies": root.replies}
                )
                return
            for reply_index, reply in enumerate(root.replies):
                if reply.id == comment.id:
                    root.replies[reply_index] = comment
                    return

    def apply_comment_deleted(self, comment_id: UUID) -> None:
        """Remove from the root list, else from whichever reply list holds it."""
        for index, root in enumerate(self.comments):
            if root.id == comment_id:
                del self.comments[index]
                self.pagination = _with_total(self.pagination, -1)
                break
        else:
            for root in self.comments:
                remaining = [r for r in root.replies if r.id != comment_id]
                if len(remaining) != len(root.replies):
                    root.replies = remaining
                    break
        self._adjust_comment_count(-1)


@dataclass
class PostListState:
    """A listing page: posts and pagination."""

    posts: list[PostResponse] = field(default_factory=list)
    pagination: Pagination | None = None

    def apply_posts_page(self, posts: list[PostResponse], pagination: Pagination) -> None:
        self.posts = list(posts)
        self.pagination = pagination

    def apply_post_created(self, post: PostResponse) -> None:
        self.posts.insert(0, post)
        self.pagination = _with_total(self.pagination, 1)

    def apply_post_updated(self, post: PostResponse) -> None:
        for index, current in enumerate(self.posts):
            if current.id == post.id:
                self.posts[index] = post.model_copy(update={"is_edited": True})
                return

    def apply_post_deleted(self, post_id: UUID) -> None:
        before = len(self.posts)
        self.posts = [p for p in self.posts if p.id != post_id]
        if len(self.posts) != before:
            self.pagination = _with_total(self.pagination, -1)

    def apply_post_like(
        self, post_id: UUID, actor_id: UUID, liked: bool, likes_count: int
    ) -> None:
        for post in self.posts:
            if post.id == post_id:
                post.likes = _set_membership(post.likes, actor_id, liked)
                post.likes_count = likes_count
                return
