"""Client-side forum state: API client, view state and controllers."""

from .api import ForumApiClient, ForumApiError, LoginRequiredError
from .controller import DraftInvalidError, PostDetailController, PostListController
from .forms import PostDraft, TagRejectedError
from .state import PostDetailState, PostListState


__all__ = [
    "DraftInvalidError",
    "ForumApiClient",
    "ForumApiError",
    "LoginRequiredError",
    "PostDetailController",
    "PostDetailState",
    "PostDraft",
    "PostListController",
    "PostListState",
    "TagRejectedError",
]
