"""Tests for the marketplace HTTP adapter, using httpx.MockTransport."""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from agent_autopilot.domain.enums import TaskStatus
from agent_autopilot.domain.exceptions import SourceUnavailableError, SubmitFailedError
from agent_autopilot.infrastructure.marketplace_client import MarketplaceClient, parse_task
from tests.factories import make_profile, make_task

BASE_URL = "https://market.test/api"


def _client(handler) -> MarketplaceClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MarketplaceClient(http, BASE_URL, api_key="master-key")


class TestParseTask:
    def test_normalizes_record(self) -> None:
        task = parse_task(
            {"id": 42, "title": "Scrape", "reward": "150.5", "tags": "python", "status": "OPEN"}
        )
        assert task is not None
        assert task.id == "42"
        assert task.reward == Decimal("150.5")
        assert task.tags == ("python",)
        assert task.status == TaskStatus.OPEN

    def test_budget_fallback(self) -> None:
        task = parse_task({"id": "t1", "budget": 300})
        assert task.reward == Decimal("300")

    @pytest.mark.parametrize("reward", ["abc", -5, "NaN", None])
    def test_bad_reward_becomes_zero(self, reward) -> None:
        assert parse_task({"id": "t1", "reward": reward}).reward == Decimal(0)

    def test_missing_id_dropped(self) -> None:
        assert parse_task({"title": "no id"}) is None

    def test_unknown_status_dropped(self) -> None:
        assert parse_task({"id": "t1", "status": "archived"}) is None

    def test_missing_status_defaults_to_open(self) -> None:
        assert parse_task({"id": "t1"}).status == TaskStatus.OPEN


class TestFetchOpenTasks:
    @pytest.mark.asyncio
    async def test_list_body(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[{"id": "a", "reward": 10}, {"id": "b"}, "junk"])

        tasks = await _client(handler).fetch_open_tasks()

        assert [t.id for t in tasks] == ["a", "b"]
        assert seen["url"] == f"{BASE_URL}/jobs/match"
        assert seen["auth"] == "Bearer master-key"

    @pytest.mark.asyncio
    async def test_wrapped_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jobs": [{"id": "a"}]})

        tasks = await _client(handler).fetch_open_tasks()
        assert [t.id for t in tasks] == ["a"]

    @pytest.mark.asyncio
    async def test_tasks_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"tasks": [{"id": "z"}]})

        assert len(await _client(handler).fetch_open_tasks()) == 1

    @pytest.mark.asyncio
    async def test_http_error_uses_body_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "Maintenance window"})

        with pytest.raises(SourceUnavailableError) as exc_info:
            await _client(handler).fetch_open_tasks()
        assert exc_info.value.message == "Maintenance window"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(SourceUnavailableError, match="Timed out"):
            await _client(handler).fetch_open_tasks()

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(SourceUnavailableError, match="not valid JSON"):
            await _client(handler).fetch_open_tasks()

    @pytest.mark.asyncio
    async def test_unexpected_shape(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": "nope"})

        with pytest.raises(SourceUnavailableError, match="unexpected shape"):
            await _client(handler).fetch_open_tasks()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_posts_with_agent_key(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"ok": True})

        agent = make_profile(agent_key="agent-secret")
        outcome = await _client(handler).submit(make_task("t9"), agent, "hello")

        assert outcome.success
        assert outcome.message == "Submitted"
        assert seen["url"] == f"{BASE_URL}/jobs/t9/submit"
        assert seen["auth"] == "Bearer agent-secret"
        assert seen["body"] == {"submission": "hello"}

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(SubmitFailedError) as exc_info:
            await _client(handler).submit(make_task("t9"), make_profile(), "x")
        assert exc_info.value.message == "Failed (500)"
        assert exc_info.value.status_code == 500
        assert exc_info.value.task_id == "t9"

    @pytest.mark.asyncio
    async def test_message_field(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "Already submitted"})

        with pytest.raises(SubmitFailedError, match="Already submitted"):
            await _client(handler).submit(make_task(), make_profile(), "x")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(SubmitFailedError, match="Transport error"):
            await _client(handler).submit(make_task(), make_profile(), "x")
