"""Tests for forum errors and their HTTP mapping."""

import pytest

from src.core.errors import (
    CommentNotFoundError,
    ForumError,
    PermissionDeniedError,
    PostNotFoundError,
    RateLimitExceededError,
    ValidationFailedError,
    WriteConflictError,
    handle_forum_error,
)


class TestHandleForumError:
    """Tests for handle_forum_error."""

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (ValidationFailedError(), 400),
            (PostNotFoundError(), 404),
            (CommentNotFoundError(), 404),
            (PermissionDeniedError(), 403),
            (RateLimitExceededError(), 429),
            (WriteConflictError(), 409),
            (ForumError("boom"), 500),
        ],
    )
    def test_status_codes(self, error: ForumError, status_code: int) -> None:
        assert handle_forum_error(error).status_code == status_code

    def test_message_becomes_detail(self) -> None:
        exc = handle_forum_error(ValidationFailedError("Search query is required"))
        assert exc.detail == "Search query is required"

    def test_codes(self) -> None:
        assert PostNotFoundError().code == "post_not_found"
        assert PermissionDeniedError("no").message == "no"
