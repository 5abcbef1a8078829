"""Tests for like toggling."""

from collections.abc import Callable
from uuid import uuid4

from src.engagement import LikeResult, toggle_like
from src.posts.models import Post


class TestToggleLike:
    """Tests for toggle_like."""

    def test_like_then_unlike(self, make_post: Callable[..., Post]) -> None:
        """Toggling twice returns to the original state and count."""
        post = make_post()
        actor = uuid4()

        assert toggle_like(post, actor) == LikeResult(liked=True, likes_count=1)
        assert actor in post.likes

        assert toggle_like(post, actor) == LikeResult(liked=False, likes_count=0)
        assert actor not in post.likes
        assert post.likes_count == 0

    def test_count_always_matches_set(self, make_post: Callable[..., Post]) -> None:
        """After any sequence of toggles by distinct actors, count == |likes|."""
        post = make_post()
        actors = [uuid4() for _ in range(6)]

        for actor in [*actors, actors[0], actors[3], actors[0]]:
            toggle_like(post, actor)
            assert post.likes_count == len(post.likes)

        assert post.likes_count == 5

    def test_drifted_count_is_repaired(self, make_post: Callable[..., Post]) -> None:
        """The stored count is recomputed, never adjusted."""
        existing = uuid4()
        post = make_post(likes={existing}, likes_count=40)

        result = toggle_like(post, uuid4())

        assert result.likes_count == 2
        assert post.likes_count == 2

    def test_touches_updated_at(self, make_post: Callable[..., Post]) -> None:
        post = make_post()
        before = post.updated_at
        toggle_like(post, uuid4())
        assert post.updated_at >= before
