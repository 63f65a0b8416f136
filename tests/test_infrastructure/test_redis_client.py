"""Tests for the Redis idempotency store."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from agent_autopilot.infrastructure.redis_client import IdempotencyStore


@pytest.fixture
def redis_mock() -> AsyncMock:
    return AsyncMock()


class TestIdempotencyStore:
    @pytest.mark.asyncio
    async def test_claim_first_time(self, redis_mock: AsyncMock) -> None:
        redis_mock.set.return_value = True
        store = IdempotencyStore(redis_mock, ttl_seconds=60)

        assert await store.claim("feedback:evt-1") is True
        redis_mock.set.assert_awaited_once_with(
            "idempotency:feedback:evt-1", "1", ex=60, nx=True
        )

    @pytest.mark.asyncio
    async def test_claim_duplicate(self, redis_mock: AsyncMock) -> None:
        redis_mock.set.return_value = None
        store = IdempotencyStore(redis_mock)
        assert await store.claim("feedback:evt-1") is False

    @pytest.mark.asyncio
    async def test_seen(self, redis_mock: AsyncMock) -> None:
        redis_mock.exists.return_value = 1
        store = IdempotencyStore(redis_mock)
        assert await store.seen("k") is True
        redis_mock.exists.assert_awaited_once_with("idempotency:k")

    @pytest.mark.asyncio
    async def test_release(self, redis_mock: AsyncMock) -> None:
        store = IdempotencyStore(redis_mock)
        await store.release("k")
        redis_mock.delete.assert_awaited_once_with("idempotency:k")
