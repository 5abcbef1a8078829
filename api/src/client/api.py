"""HTTP client for the forum API.

One request per action; envelopes are decoded into the same pydantic
schemas the server renders.
"""

from typing import Any
from uuid import UUID

import httpx

from src.comments.schemas import CommentEnvelope, CommentListResponse, CommentResponse
from src.core.logging import get_logger
from src.posts.schemas import (
    LikeResponse,
    MessageResponse,
    PostEnvelope,
    PostListResponse,
    PostResponse,
)


logger = get_logger(__name__)

POSTS_PATH = "/v1/posts"


class ForumApiError(Exception):
    """Request failed; ``status_code`` is 0 when no response was received."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class LoginRequiredError(ForumApiError):
    """The action needs a signed-in user."""

    def __init__(self, message: str = "Please log in to continue"):
        super().__init__(httpx.codes.UNAUTHORIZED, message)


class ForumApiClient:
    """Async client for posts and comments.

    Args:
        base_url: API root, e.g. ``https://campus.example.edu``
        token: Bearer token of the signed-in user, if any
        client: Pre-built ``httpx.AsyncClient`` (tests pass one with a mock transport)
    """

    def __init__(
        self,
        base_url: str = "",
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ForumApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = False,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if auth and not self.token:
            raise LoginRequiredError

        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._client.request(
                method,
                f"{POSTS_PATH}{path}",
                json=json,
                params={k: v for k, v in (params or {}).items() if v is not None},
                headers=headers,
            )
        except httpx.TimeoutException as e:
            logger.error("forum_api_timeout", method=method, path=path)
            raise ForumApiError(0, "Request timed out") from e
        except httpx.RequestError as e:
            logger.error("forum_api_request_error", method=method, path=path, error=str(e))
            raise ForumApiError(0, f"Request error: {e}") from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise LoginRequiredError

        if response.is_error:
            try:
                message = response.json().get("message") or response.reason_phrase
            except ValueError:
                message = response.reason_phrase
            logger.warning(
                "forum_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise ForumApiError(response.status_code, message)

        return response.json()

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def list_posts(
        self,
        page: int = 1,
        limit: int | None = None,
        sort: str | None = None,
        category: str | None = None,
        tag: str | None = None,
    ) -> PostListResponse:
        data = await self._request(
            "GET",
            "",
            params={
                "page": page,
                "limit": limit,
                "sort": sort,
                "category": category,
                "tag": tag,
            },
        )
        return PostListResponse.model_validate(data)

    async def trending_posts(self, page: int = 1, limit: int | None = None) -> PostListResponse:
        data = await self._request("GET", "/trending", params={"page": page, "limit": limit})
        return PostListResponse.model_validate(data)

    async def search_posts(
        self, q: str, page: int = 1, limit: int | None = None
    ) -> PostListResponse:
        data = await self._request(
            "GET", "/search", params={"q": q, "page": page, "limit": limit}
        )
        return PostListResponse.model_validate(data)

    async def user_posts(self, page: int = 1, limit: int | None = None) -> PostListResponse:
        data = await self._request(
            "GET", "/user", auth=True, params={"page": page, "limit": limit}
        )
        return PostListResponse.model_validate(data)

    async def get_post(self, post_id: UUID) -> PostResponse:
        data = await self._request("GET", f"/{post_id}")
        return PostEnvelope.model_validate(data).post

    async def create_post(
        self,
        title: str,
        content: str,
        tags: list[str] | None = None,
        category: str | None = None,
    ) -> PostResponse:
        body: dict[str, Any] = {"title": title, "content": content, "tags": tags or []}
        if category:
            body["category"] = category
        data = await self._request("POST", "", auth=True, json=body)
        return PostEnvelope.model_validate(data).post

    async def update_post(
        self,
        post_id: UUID,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
        category: str | None = None,
    ) -> PostResponse:
        body = {
            key: value
            for key, value in {
                "title": title,
                "content": content,
                "tags": tags,
                "category": category,
            }.items()
            if value is not None
        }
        data = await self._request("PUT", f"/{post_id}", auth=True, json=body)
        return PostEnvelope.model_validate(data).post

    async def delete_post(self, post_id: UUID) -> str:
        data = await self._request("DELETE", f"/{post_id}", auth=True)
        return MessageResponse.model_validate(data).message

    async def like_post(self, post_id: UUID) -> LikeResponse:
        data = await self._request("POST", f"/{post_id}/like", auth=True)
        return LikeResponse.model_validate(data)

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def list_comments(
        self, post_id: UUID, page: int = 1, limit: int | None = None
    ) -> CommentListResponse:
        data = await self._request(
            "GET", f"/{post_id}/comments", params={"page": page, "limit": limit}
        )
        return CommentListResponse.model_validate(data)

    async def create_comment(
        self, post_id: UUID, content: str, parent_comment_id: UUID | None = None
    ) -> CommentResponse:
        body: dict[str, Any] = {"postId": str(post_id), "content": content}
        if parent_comment_id is not None:
            body["parentCommentId"] = str(parent_comment_id)
        data = await self._request("POST", "/comments", auth=True, json=body)
        return CommentEnvelope.model_validate(data).comment

    async def update_comment(self, comment_id: UUID, content: str) -> CommentResponse:
        data = await self._request(
            "PUT", f"/comments/{comment_id}", auth=True, json={"content": content}
        )
        return CommentEnvelope.model_validate(data).comment

    async def delete_comment(self, comment_id: UUID) -> str:
        data = await self._request("DELETE", f"/comments/{comment_id}", auth=True)
        return MessageResponse.model_validate(data).message

    async def like_comment(self, comment_id: UUID) -> LikeResponse:
        data = await self._request("POST", f"/comments/{comment_id}/like", auth=True)
        return LikeResponse.model_validate(data)
