"""Per-user creation rate limiting backed by Redis."""

from typing import TYPE_CHECKING
from uuid import UUID

from src.core.errors import RateLimitExceededError
from src.core.redis import rate_limit_key


if TYPE_CHECKING:
    from redis.asyncio import Redis


WINDOW_SECONDS = 60


async def check_rate_limit(
    redis: "Redis | None", action: str, user_id: UUID, limit: int
) -> None:
    """Raise RateLimitExceededError when ``user_id`` used up ``limit`` this minute.

    No-op without Redis.
    """
    if not redis:
        return

    count = await redis.get(rate_limit_key(action, str(user_id)))
    if count and int(count) >= limit:
        raise RateLimitExceededError


async def increment_rate_limit(redis: "Redis | None", action: str, user_id: UUID) -> None:
    """Count one more ``action`` by ``user_id`` in the current window."""
    if not redis:
        return

    key = rate_limit_key(action, str(user_id))
    pipe = redis.pipeline()
    pipe.incr(key)
    pipe.expire(key, WINDOW_SECONDS)
    await pipe.execute()
