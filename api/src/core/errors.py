"""Forum domain errors.

Services raise these; routers translate them into HTTP responses through
``handle_forum_error``.
"""

from fastapi import HTTPException, status


class ForumError(Exception):
    """Base forum error."""

    def __init__(self, message: str, code: str = "forum_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationFailedError(ForumError):
    """Missing field, malformed reference or empty search query."""

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, "validation_failed")


class PostNotFoundError(ForumError):
    """Post not found (or no longer active)."""

    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class CommentNotFoundError(ForumError):
    """Comment not found (or no longer active)."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class PermissionDeniedError(ForumError):
    """Actor may not perform the operation on the entity."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, "permission_denied")


class RateLimitExceededError(ForumError):
    """Too many creations in the current window."""

    def __init__(self, message: str = "Too many requests, slow down"):
        super().__init__(message, "rate_limit_exceeded")



class WriteConflictError(ForumError):
    """A conditional write kept losing to concurrent writers."""

    def __init__(self, message: str = "Too many concurrent updates, try again"):
        super().__init__(message, "write_conflict")

STATUS_BY_CODE = {
    "validation_failed": status.HTTP_400_BAD_REQUEST,
    "post_not_found": status.HTTP_404_NOT_FOUND,
    "comment_not_found": status.HTTP_404_NOT_FOUND,
    "permission_denied": status.HTTP_403_FORBIDDEN,
    "rate_limit_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    "write_conflict": status.HTTP_409_CONFLICT,
}


def handle_forum_error(error: ForumError) -> HTTPException:
    """Convert a forum error to an HTTP exception.

    Unknown codes map to 500.
    """
    status_code = STATUS_BY_CODE.get(
        error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return HTTPException(status_code=status_code, detail=error.message)
