"""FastAPI dependencies for posts.

Provides dependency injection for:
- Post service
- Page/limit query parameters shared by every listing
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status

from src.config import get_settings

from .service import PostService


async def get_post_service(request: Request) -> PostService:
    """Get post service from app state."""
    app_state = request.app.state
    if not hasattr(app_state, "post_service") or not app_state.post_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Post service not available",
        )
    return app_state.post_service


@dataclass(frozen=True)
class PageParams:
    """Requested page (1-based) and page size."""

    page: int
    limit: int


def get_page_params(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> PageParams:
    """Page parameters; ``limit`` defaults to and is capped by the settings."""
    settings = get_settings()
    size = min(limit or settings.forum_default_page_size, settings.forum_max_page_size)
    return PageParams(page=page, limit=size)


PostServiceDep = Annotated[PostService, Depends(get_post_service)]
PageParamsDep = Annotated[PageParams, Depends(get_page_params)]
