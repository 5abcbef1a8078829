"""Tests for per-user creation rate limits."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.core.errors import RateLimitExceededError
from src.core.ratelimit import WINDOW_SECONDS, check_rate_limit, increment_rate_limit
from src.core.redis import rate_limit_key


class TestRateLimit:
    """Tests for check_rate_limit / increment_rate_limit."""

    @pytest.mark.asyncio
    async def test_under_limit(self, mock_redis: AsyncMock) -> None:
        mock_redis.get = AsyncMock(return_value="4")
        await check_rate_limit(mock_redis, "post", uuid4(), limit=5)

    @pytest.mark.asyncio
    async def test_at_limit_raises(self, mock_redis: AsyncMock) -> None:
        mock_redis.get = AsyncMock(return_value="5")
        with pytest.raises(RateLimitExceededError):
            await check_rate_limit(mock_redis, "post", uuid4(), limit=5)

    @pytest.mark.asyncio
    async def test_without_redis(self) -> None:
        """No Redis, no limits."""
        await check_rate_limit(None, "post", uuid4(), limit=0)
        await increment_rate_limit(None, "post", uuid4())

    @pytest.mark.asyncio
    async def test_increment_sets_window(self, mock_redis: AsyncMock) -> None:
        user_id = uuid4()
        await increment_rate_limit(mock_redis, "comment", user_id)

        key = rate_limit_key("comment", str(user_id))
        pipe = mock_redis.pipeline.return_value
        pipe.incr.assert_called_once_with(key)
        pipe.expire.assert_called_once_with(key, WINDOW_SECONDS)
        pipe.execute.assert_awaited_once()

    def test_key_format(self) -> None:
        assert rate_limit_key("post", "u1") == "forum:rate:post:u1:minute"
