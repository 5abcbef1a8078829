"""Adjacency list to tree fold for comments."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from .models import Comment


@dataclass
class CommentNode:
    """A comment with its attached replies."""

    comment: Comment
    replies: list["CommentNode"] = field(default_factory=list)


def build_comment_tree(
    roots: Iterable[Comment],
    descendants: Iterable[Comment],
    max_depth: int = 1,
) -> list[CommentNode]:
    """Attach ``descendants`` under ``roots`` by ``parent_comment_id``.

    Roots keep their given order; replies are ordered oldest first and
    default to ``[]``. Descendants whose parent is not among the fetched
    nodes, or that sit deeper than ``max_depth``, are dropped.

    Args:
        roots: Top-level comments in display order
        descendants: Candidate replies at any depth
        max_depth: Reply levels to attach (1 = replies of roots only)

    Returns:
        One node per root
    """
    children: dict[UUID, list[Comment]] = defaultdict(list)
    for comment in descendants:
        if comment.parent_comment_id is not None:
            children[comment.parent_comment_id].append(comment)
    for group in children.values():
        group.sort(key=lambda c: c.created_at)

    def attach(comment: Comment, depth: int) -> CommentNode:
        node = CommentNode(comment=comment)
        if depth < max_depth:
            node.replies = [
                attach(child, depth + 1) for child in children.get(comment.comment_id, [])
            ]
        return node

    return [attach(root, 0) for root in roots]
