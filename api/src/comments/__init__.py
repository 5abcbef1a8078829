"""Post comments: two-level threads, likes and soft deletion."""

from .models import COMMENTS_TABLES_CQL, Comment
from .router import router
from .service import CommentService
from .tree import CommentNode, build_comment_tree


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentNode",
    "CommentService",
    "build_comment_tree",
    "router",
]
