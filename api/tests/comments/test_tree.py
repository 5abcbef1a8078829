"""Tests for the comment tree builder."""

from collections.abc import Callable
from datetime import timedelta
from uuid import uuid4

from src.comments.models import Comment
from src.comments.tree import build_comment_tree


class TestBuildCommentTree:
    """Tests for build_comment_tree."""

    def test_replies_attached_oldest_first(
        self, make_comment: Callable[..., Comment]
    ) -> None:
        post_id = uuid4()
        root = make_comment(post_id, age=timedelta(hours=5))
        late = make_comment(post_id, parent=root, age=timedelta(hours=1))
        early = make_comment(post_id, parent=root, age=timedelta(hours=3))

        tree = build_comment_tree([root], [late, early])

        assert [n.comment for n in tree] == [root]
        assert [n.comment for n in tree[0].replies] == [early, late]

    def test_roots_without_replies_get_empty_list(
        self, make_comment: Callable[..., Comment]
    ) -> None:
        post_id = uuid4()
        roots = [make_comment(post_id), make_comment(post_id)]

        tree = build_comment_tree(roots, [])

        assert [n.comment for n in tree] == roots
        assert all(n.replies == [] for n in tree)

    def test_orphans_dropped(self, make_comment: Callable[..., Comment]) -> None:
        post_id = uuid4()
        root = make_comment(post_id)
        stranger = make_comment(post_id, parent=make_comment(post_id))

        tree = build_comment_tree([root], [stranger])

        assert tree[0].replies == []

    def test_depth_limit(self, make_comment: Callable[..., Comment]) -> None:
        post_id = uuid4()
        root = make_comment(post_id)
        reply = make_comment(post_id, parent=root)
        nested = make_comment(post_id, parent=reply)

        shallow = build_comment_tree([root], [reply, nested])
        assert shallow[0].replies[0].replies == []

        deep = build_comment_tree([root], [reply, nested], max_depth=2)
        assert [n.comment for n in deep[0].replies[0].replies] == [nested]
