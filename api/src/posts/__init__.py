"""Forum posts: storage, listing modes, likes and the HTTP surface."""

from .models import POSTS_TABLES_CQL, Post, PostCategory
from .router import router
from .service import PostService


__all__ = ["POSTS_TABLES_CQL", "Post", "PostCategory", "PostService", "router"]
