"""Shared fixtures: settings, identities, tokens, entity factories and the app."""

import asyncio
import os
import tempfile
from collections.abc import Callable, Iterable, Iterator
from datetime import timedelta
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest


# Must be set before src.main configures logging
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="campusforum-logs-"))

from cassandra.cluster import Session  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.auth.permissions import UserRole  # noqa: E402
from src.auth.schemas import AuthenticatedUser  # noqa: E402
from src.auth.security import create_access_token  # noqa: E402
from src.comments.models import Comment, create_comment  # noqa: E402
from src.comments.service import CommentService  # noqa: E402
from src.config import Settings  # noqa: E402
from src.core.query import EntityStatus  # noqa: E402
from src.posts.models import Post, create_post  # noqa: E402
from src.posts.service import PostService  # noqa: E402
from src.utils.dates import utcnow  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    """Forum settings with defaults."""
    return Settings(environment="testing")


# ==============================================================================
# Identities
# ==============================================================================


@pytest.fixture
def author() -> AuthenticatedUser:
    """Regular user who writes the content under test."""
    return AuthenticatedUser(
        id=uuid4(), email="ana@campus.edu", role=UserRole.USER, name="Ana"
    )


@pytest.fixture
def other_user() -> AuthenticatedUser:
    """Regular user who did not write the content under test."""
    return AuthenticatedUser(id=uuid4(), email="ben@campus.edu", role=UserRole.USER)


@pytest.fixture
def admin() -> AuthenticatedUser:
    """Privileged moderator."""
    return AuthenticatedUser(
        id=uuid4(), email="mod@campus.edu", role=UserRole.ADMIN, name="Moderator"
    )


def bearer(user: AuthenticatedUser) -> dict[str, str]:
    """Authorization header for ``user``."""
    token = create_access_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "name": user.name,
        },
        expires_delta=timedelta(minutes=5),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[AuthenticatedUser], dict[str, str]]:
    """Factory of Authorization headers."""
    return bearer


# ==============================================================================
# Entities
# ==============================================================================


@pytest.fixture
def make_post(author: AuthenticatedUser) -> Callable[..., Post]:
    """Factory of active posts; keyword overrides are applied after creation."""

    def factory(age: timedelta = timedelta(0), **overrides: Any) -> Post:
        post = create_post(
            title=overrides.pop("title", "Study group for calculus"),
            content=overrides.pop("content", "Meeting in the library every Tuesday."),
            author_id=overrides.pop("author_id", author.id),
            author_name=overrides.pop("author_name", author.display_name),
            author_email=overrides.pop("author_email", author.email),
            tags=overrides.pop("tags", ["math"]),
        )
        post.created_at = post.updated_at = utcnow() - age
        for key, value in overrides.items():
            setattr(post, key, value)
        return post

    return factory


@pytest.fixture
def make_comment(author: AuthenticatedUser) -> Callable[..., Comment]:
    """Factory of active comments; keyword overrides are applied after creation."""

    def factory(
        post_id: UUID,
        parent: Comment | None = None,
        age: timedelta = timedelta(0),
        **overrides: Any,
    ) -> Comment:
        comment = create_comment(
            post_id=post_id,
            content=overrides.pop("content", "Count me in!"),
            author_id=overrides.pop("author_id", author.id),
            author_name=overrides.pop("author_name", author.display_name),
            author_email=overrides.pop("author_email", author.email),
            parent_comment_id=parent.comment_id if parent else None,
        )
        comment.created_at = comment.updated_at = utcnow() - age
        for key, value in overrides.items():
            setattr(comment, key, value)
        return comment

    return factory


def as_row(entity: Post | Comment) -> SimpleNamespace:
    """Cassandra-like row holding the entity's columns."""
    return SimpleNamespace(**entity.row_values())


# ==============================================================================
# Cassandra / Redis doubles
# ==============================================================================


class ResultRows(list):
    """Stand-in for the driver's ResultSet: rows plus the conditional-write outcome."""

    def __init__(self, rows: Iterable[Any] = (), applied: bool = True):
        super().__init__(rows)
        self.was_applied = applied

    def one(self) -> Any:
        return self[0] if self else None


class PostStore:
    """In-memory ``posts`` table and its indexes answering PostService statements.

    The stored Post objects are the rows: writes mutate them in place and
    conditional updates check their IF clause against them. With
    ``interleave`` every call yields to the event loop before touching the
    store, so requests run with ``asyncio.gather`` interleave between reads
    and writes.
    """

    def __init__(
        self,
        service: PostService,
        posts: Iterable[Post] = (),
        comment_statuses: Iterable[str] = (),
        interleave: bool = False,
    ):
        self.service = service
        self.posts = {p.post_id: p for p in posts}
        self.by_status = {(p.status.value, p.post_id) for p in self.posts.values()}
        self.by_author = {(p.author_id, p.post_id) for p in self.posts.values()}
        self.comment_statuses = list(comment_statuses)
        self.interleave = interleave

    async def execute(self, statement: Any, params: Any = None) -> ResultRows:
        if self.interleave:
            await asyncio.sleep(0)
        s = self.service

        if statement is s._get_post:
            post = self.posts.get(params[0])
            return ResultRows([as_row(post)] if post else [])
        if statement is s._get_posts_by_ids:
            return ResultRows(
                as_row(self.posts[i]) for i in params[0] if i in self.posts
            )
        if statement is s._get_post_ids_by_status:
            return ResultRows(
                SimpleNamespace(post_id=pid)
                for status, pid in self.by_status
                if status == params[0]
            )
        if statement is s._get_post_ids_by_author:
            return ResultRows(
                SimpleNamespace(post_id=pid)
                for author_id, pid in self.by_author
                if author_id == params[0]
            )
        if statement is s._get_comment_ids:
            return ResultRows(
                SimpleNamespace(comment_id=uuid4()) for _ in self.comment_statuses
            )
        if statement is s._get_comment_statuses:
            return ResultRows(
                SimpleNamespace(status=status) for status in self.comment_statuses
            )

        if statement is s._insert_post:
            if params["post_id"] in self.posts:
                return ResultRows(applied=False)
            self.posts[params["post_id"]] = Post.from_row(SimpleNamespace(**params))
        elif statement is s._insert_post_by_status:
            self.by_status.add((params[0], params[2]))
        elif statement is s._insert_post_by_author:
            self.by_author.add((params[0], params[2]))
        elif statement is s._delete_post_by_status:
            self.by_status.discard((params[0], params[2]))
        elif statement is s._update_post_fields:
            post = self.posts.get(params[6])
            if post is None or post.status.value != params[7]:
                return ResultRows(applied=False)
            post.title, post.content, post.tags, post.category = params[:4]
            post.is_edited, post.updated_at = params[4:6]
        elif statement is s._update_post_status:
            post = self.posts.get(params[2])
            if post is None or post.status.value != params[3]:
                return ResultRows(applied=False)
            post.status = EntityStatus(params[0])
            post.updated_at = params[1]
        elif statement in (s._add_post_like, s._remove_post_like):
            delta, count, updated_at, post_id, status, expected = params
            post = self.posts.get(post_id)
            if (
                post is None
                or post.status.value != status
                or post.likes_count != expected
            ):
                return ResultRows(applied=False)
            if statement is s._add_post_like:
                post.likes = post.likes | delta
            else:
                post.likes = post.likes - delta
            post.likes_count = count
            post.updated_at = updated_at
        elif statement is s._set_comments_count:
            count, post_id, expected = params
            post = self.posts.get(post_id)
            if post is None or post.comments_count != expected:
                return ResultRows(applied=False)
            post.comments_count = count
        return ResultRows()


class CommentStore:
    """In-memory ``comments_by_id`` table and its indexes answering CommentService.

    Same conventions as PostStore.
    """

    def __init__(
        self,
        service: CommentService,
        comments: Iterable[Comment] = (),
        interleave: bool = False,
    ):
        self.service = service
        self.comments = {c.comment_id: c for c in comments}
        self.by_post = {(c.post_id, c.comment_id) for c in self.comments.values()}
        self.replies = {
            (c.parent_comment_id, c.comment_id)
            for c in self.comments.values()
            if c.parent_comment_id is not None
        }
        self.interleave = interleave

    async def execute(self, statement: Any, params: Any = None) -> ResultRows:
        if self.interleave:
            await asyncio.sleep(0)
        s = self.service

        if statement is s._get_comment:
            comment = self.comments.get(params[0])
            return ResultRows([as_row(comment)] if comment else [])
        if statement is s._get_comments_by_ids:
            return ResultRows(
                as_row(self.comments[i]) for i in params[0] if i in self.comments
            )
        if statement is s._get_comment_ids_by_post:
            return ResultRows(
                SimpleNamespace(
                    comment_id=cid, parent_comment_id=self.comments[cid].parent_comment_id
                )
                for pid, cid in self.by_post
                if pid == params[0]
            )
        if statement is s._get_reply_ids:
            return ResultRows(
                SimpleNamespace(comment_id=cid)
                for parent_id, cid in self.replies
                if parent_id in params[0]
            )

        if statement is s._insert_comment:
            if params["comment_id"] in self.comments:
                return ResultRows(applied=False)
            comment = Comment.from_row(SimpleNamespace(**params))
            self.comments[comment.comment_id] = comment
        elif statement is s._insert_comment_by_post:
            self.by_post.add((params[0], params[2]))
        elif statement is s._insert_reply:
            self.replies.add((params[0], params[2]))
        elif statement in (s._update_comment_content, s._update_comment_status):
            comment = self.comments.get(params[3])
            if comment is None or comment.status.value != params[4]:
                return ResultRows(applied=False)
            if statement is s._update_comment_content:
                comment.content, comment.is_edited, comment.updated_at = params[:3]
            else:
                status, comment.content, comment.updated_at = params[:3]
                comment.status = EntityStatus(status)
        elif statement in (s._add_comment_like, s._remove_comment_like):
            delta, count, updated_at, comment_id, status, expected = params
            comment = self.comments.get(comment_id)
            if (
                comment is None
                or comment.status.value != status
                or comment.likes_count != expected
            ):
                return ResultRows(applied=False)
            if statement is s._add_comment_like:
                comment.likes = comment.likes | delta
            else:
                comment.likes = comment.likes - delta
            comment.likes_count = count
            comment.updated_at = updated_at
        return ResultRows()


@pytest.fixture
def mock_session() -> Mock:
    """Mock Cassandra session; every prepared statement is a distinct object."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: Mock(query_string=cql))
    session.aexecute = AsyncMock(return_value=ResultRows())
    return session


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Mock Redis client with an empty rate-limit counter."""
    redis_mock = AsyncMock()
    mock_pipe = Mock()
    mock_pipe.incr = Mock()
    mock_pipe.expire = Mock()
    mock_pipe.execute = AsyncMock(return_value=[1, True])
    redis_mock.pipeline = Mock(return_value=mock_pipe)
    redis_mock.get = AsyncMock(return_value=None)
    return redis_mock


@pytest.fixture
def post_service(mock_session: Mock, mock_redis: AsyncMock, settings: Settings) -> PostService:
    """PostService over the mocked session."""
    return PostService(
        session=mock_session, keyspace="test_keyspace", redis=mock_redis, settings=settings
    )


@pytest.fixture
def post_service_mock() -> AsyncMock:
    """Post service double for CommentService; find_post answers None unless set."""
    service = AsyncMock(spec=PostService)
    service.find_post = AsyncMock(return_value=None)
    return service


@pytest.fixture
def comment_service(
    mock_session: Mock,
    mock_redis: AsyncMock,
    post_service_mock: AsyncMock,
    settings: Settings,
) -> CommentService:
    """CommentService over the mocked session and a mocked PostService."""
    return CommentService(
        session=mock_session,
        keyspace="test_keyspace",
        post_service=post_service_mock,
        redis=mock_redis,
        settings=settings,
    )


@pytest.fixture
def post_store(post_service: PostService, mock_session: Mock) -> Callable[..., PostStore]:
    """Back ``post_service`` with an in-memory PostStore holding the given posts."""

    def factory(posts: Iterable[Post] = (), **kwargs: Any) -> PostStore:
        store = PostStore(post_service, posts, **kwargs)
        mock_session.aexecute = AsyncMock(side_effect=store.execute)
        return store

    return factory


@pytest.fixture
def comment_store(
    comment_service: CommentService, mock_session: Mock
) -> Callable[..., CommentStore]:
    """Back ``comment_service`` with an in-memory CommentStore."""

    def factory(comments: Iterable[Comment] = (), **kwargs: Any) -> CommentStore:
        store = CommentStore(comment_service, comments, **kwargs)
        mock_session.aexecute = AsyncMock(side_effect=store.execute)
        return store

    return factory


def written(session: Mock, statement: Any) -> list[Any]:
    """Parameters of every aexecute() call made with ``statement``."""
    return [c.args[1] for c in session.aexecute.await_args_list if c.args[0] is statement]


# ==============================================================================
# Application
# ==============================================================================


@pytest.fixture
def app() -> Iterator[FastAPI]:
    """Application with mocked services (the lifespan is not run)."""
    from src.main import app as forum_app  # noqa: PLC0415

    forum_app.state.post_service = AsyncMock(spec=PostService)
    forum_app.state.comment_service = AsyncMock(spec=CommentService)
    forum_app.state.redis = None
    yield forum_app
    forum_app.state.post_service = None
    forum_app.state.comment_service = None


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client without lifespan; unhandled errors become 500 responses."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def writes(mock_session: Mock) -> Callable[[Any], list[Any]]:
    """Statement -> parameters it was executed with."""
    return lambda statement: written(mock_session, statement)
