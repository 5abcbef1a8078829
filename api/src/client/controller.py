"""Controllers binding one API call to one state reconciliation step.

Every action awaits the server response first and only then updates the
local state, so a failed call leaves the state untouched.
"""

from uuid import UUID

from .api import ForumApiClient
from .forms import PostDraft
from .state import PostDetailState, PostListState


class DraftInvalidError(ValueError):
    """Post draft failed client-side validation; nothing was sent."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(errors.values()))


def _checked(draft: PostDraft) -> PostDraft:
    errors = draft.validate()
    if errors:
        raise DraftInvalidError(errors)
    return draft


def _require_viewer(viewer_id: UUID | None) -> UUID:
    if viewer_id is None:
        msg = "viewer_id is required to reconcile likes"
        raise RuntimeError(msg)
    return viewer_id


class PostDetailController:
    """Post page: the post and its comment thread."""

    def __init__(self, api: ForumApiClient, post_id: UUID, viewer_id: UUID | None = None):
        self.api = api
        self.post_id = post_id
        self.viewer_id = viewer_id
        self.state = PostDetailState()

    async def load(self) -> PostDetailState:
        """Fetch the post and the first page of comments."""
        self.state.apply_post_loaded(await self.api.get_post(self.post_id))
        await self.load_comments(page=1)
        return self.state

    async def load_comments(self, page: int = 1) -> None:
        result = await self.api.list_comments(self.post_id, page=page)
        self.state.apply_comments_page(result.comments, result.pagination)

    async def load_more_comments(self) -> bool:
        """Append the next page of comments; False when already at the last one."""
        pagination = self.state.pagination
        if pagination is None or pagination.page >= pagination.pages:
            return False
        await self.load_comments(page=pagination.page + 1)
        return True

    async def toggle_post_like(self) -> None:
        viewer_id = _require_viewer(self.viewer_id)
        result = await self.api.like_post(self.post_id)
        self.state.apply_post_like(viewer_id, result.liked, result.likes_count)

    async def edit_post(self, draft: PostDraft) -> None:
        _checked(draft)
        post = await self.api.update_post(
            self.post_id,
            title=draft.title,
            content=draft.content,
            tags=draft.tags,
            category=draft.category,
        )
        self.state.apply_post_updated(post)

    async def add_comment(self, content: str, parent_comment_id: UUID | None = None) -> None:
        comment = await self.api.create_comment(self.post_id, content, parent_comment_id)
        self.state.apply_comment_created(comment)

    async def edit_comment(self, comment_id: UUID, content: str) -> None:
        comment = await self.api.update_comment(comment_id, content)
        self.state.apply_comment_updated(comment)

    async def delete_comment(self, comment_id: UUID) -> None:
        await self.api.delete_comment(comment_id)
        self.state.apply_comment_deleted(comment_id)

    async def toggle_comment_like(self, comment_id: UUID) -> None:
        viewer_id = _require_viewer(self.viewer_id)
        result = await self.api.like_comment(comment_id)
        self.state.apply_comment_like(
            comment_id, viewer_id, result.liked, result.likes_count
        )


class PostListController:
    """Forum listing: all, trending, search or the viewer's own posts."""

    def __init__(self, api: ForumApiClient, viewer_id: UUID | None = None):
        self.api = api
        self.viewer_id = viewer_id
        self.state = PostListState()

    async def load(
        self,
        page: int = 1,
        sort: str | None = None,
        category: str | None = None,
        tag: str | None = None,
    ) -> PostListState:
        result = await self.api.list_posts(page=page, sort=sort, category=category, tag=tag)
        self.state.apply_posts_page(result.posts, result.pagination)
        return self.state

    async def trending(self, page: int = 1) -> PostListState:
        result = await self.api.trending_posts(page=page)
        self.state.apply_posts_page(result.posts, result.pagination)
        return self.state

    async def search(self, q: str, page: int = 1) -> PostListState:
        result = await self.api.search_posts(q, page=page)
        self.state.apply_posts_page(result.posts, result.pagination)
        return self.state

    async def mine(self, page: int = 1) -> PostListState:
        result = await self.api.user_posts(page=page)
        self.state.apply_posts_page(result.posts, result.pagination)
        return self.state

    async def create(self, draft: PostDraft) -> None:
        _checked(draft)
        post = await self.api.create_post(
            draft.title, draft.content, tags=draft.tags, category=draft.category
        )
        self.state.apply_post_created(post)

    async def edit(self, post_id: UUID, draft: PostDraft) -> None:
        _checked(draft)
        post = await self.api.update_post(
            post_id,
            title=draft.title,
            content=draft.content,
            tags=draft.tags,
            category=draft.category,
        )
        self.state.apply_post_updated(post)

    async def delete(self, post_id: UUID) -> None:
        await self.api.delete_post(post_id)
        self.state.apply_post_deleted(post_id)

    async def toggle_like(self, post_id: UUID) -> None:
        viewer_id = _require_viewer(self.viewer_id)
        result = await self.api.like_post(post_id)
        self.state.apply_post_like(post_id, viewer_id, result.liked, result.likes_count)
