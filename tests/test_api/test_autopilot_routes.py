"""Tests for the autopilot control, cycle and ledger routes."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tests.factories import make_task


def _api_task(task_id: str, reward: int = 100):
    return make_task(task_id, title=f"Python API {task_id}", description="", reward=reward)


class TestControl:
    @pytest.mark.asyncio
    async def test_start_then_stop(self, client) -> None:
        response = await client.post("/api/v1/autopilot/control", json={"action": "start"})
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Engine started"}

        status = (await client.get("/api/v1/autopilot/status")).json()
        assert status["is_running"] is True
        assert status["state"] == "RUNNING"

        response = await client.post("/api/v1/autopilot/control", json={"action": "stop"})
        assert response.json()["success"] is True
        assert response.json()["message"].startswith("Stopped after")

    @pytest.mark.asyncio
    async def test_start_twice(self, client) -> None:
        await client.post("/api/v1/autopilot/control", json={"action": "start"})
        response = await client.post("/api/v1/autopilot/control", json={"action": "START"})
        assert response.json() == {"success": True, "message": "Engine already running"}

    @pytest.mark.asyncio
    async def test_stop_when_stopped(self, client) -> None:
        response = await client.post("/api/v1/autopilot/control", json={"action": "stop"})
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Engine not running"}

    @pytest.mark.asyncio
    async def test_invalid_action(self, client) -> None:
        response = await client.post("/api/v1/autopilot/control", json={"action": "reboot"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_CONTROL_ACTION"
        assert 'Use "start" or "stop"' in response.json()["message"]

    @pytest.mark.asyncio
    async def test_request_id_header(self, client) -> None:
        response = await client.get(
            "/api/v1/autopilot/status", headers={"X-Request-ID": "req-123"}
        )
        assert response.headers["X-Request-ID"] == "req-123"


class TestStatus:
    @pytest.mark.asyncio
    async def test_idle_engine(self, client) -> None:
        body = (await client.get("/api/v1/autopilot/status")).json()

        assert body["is_running"] is False
        assert body["cycle_count"] == 0
        assert body["last_result"] is None
        assert body["seconds_until_next_cycle"] == 0
        assert body["activity_log"] == []


class TestCycle:
    @pytest.mark.asyncio
    async def test_manual_cycle(self, client, fake_source) -> None:
        fake_source.tasks = [_api_task("t1", 500)]

        response = await client.post("/api/v1/autopilot/cycle")

        body = response.json()
        assert response.status_code == 200
        assert body["executed"] is True
        assert body["message"] == "1 successful, 0 failed"
        assert body["summary"]["submissions_successful"] == 1
        assert body["summary"]["results"][0]["agent"] == "AP-Backend"

        status = (await client.get("/api/v1/autopilot/status")).json()
        assert status["cycle_count"] == 1
        assert status["activity_log"][0]["message"] == "Cycle #1 complete"

    @pytest.mark.asyncio
    async def test_cycle_in_flight(self, client, container) -> None:
        container.engine.run_cycle = AsyncMock(return_value=None)

        body = (await client.post("/api/v1/autopilot/cycle")).json()

        assert body["executed"] is False
        assert body["message"] == "A cycle is already in progress"
        assert body["summary"] is None

    @pytest.mark.asyncio
    async def test_fetch_error_is_reported(self, client, fake_source) -> None:
        fake_source.fetch_error = "upstream 503"

        body = (await client.post("/api/v1/autopilot/cycle")).json()

        assert body["executed"] is True
        assert body["summary"]["success"] is False
        assert body["summary"]["fetch_error"] == "upstream 503"

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_summary(self, client, fake_source) -> None:
        fake_source.fetch_open_tasks = AsyncMock(side_effect=ValueError("bad payload"))

        response = await client.post("/api/v1/autopilot/cycle")

        body = response.json()
        assert response.status_code == 200
        assert body["executed"] is True
        assert body["summary"]["success"] is False
        assert body["summary"]["error"] == "ValueError: bad payload"


class TestLedger:
    @pytest.mark.asyncio
    async def test_ledger_after_cycle(self, client, fake_source) -> None:
        fake_source.tasks = [_api_task("t1", 500), _api_task("t2", 200)]
        fake_source.failures = {"t2"}
        await client.post("/api/v1/autopilot/cycle")

        body = (await client.get("/api/v1/autopilot/ledger")).json()

        assert body["stats"] == {"total": 2, "pending": 1, "won": 0, "lost": 0, "failed": 1}
        assert {b["task_id"] for b in body["bids"]} == {"t1", "t2"}

    @pytest.mark.asyncio
    async def test_limit(self, client, fake_source) -> None:
        fake_source.tasks = [_api_task(f"t{i}") for i in range(3)]
        await client.post("/api/v1/autopilot/cycle")

        body = (await client.get("/api/v1/autopilot/ledger", params={"limit": 2})).json()
        assert len(body["bids"]) == 2
        assert body["stats"]["total"] == 3

    @pytest.mark.asyncio
    async def test_limit_validation(self, client) -> None:
        response = await client.get("/api/v1/autopilot/ledger", params={"limit": 0})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_resolve_bid(self, client, fake_source) -> None:
        fake_source.tasks = [_api_task("t1")]
        await client.post("/api/v1/autopilot/cycle")
        bid_id = (await client.get("/api/v1/autopilot/ledger")).json()["bids"][0]["id"]

        response = await client.patch(
            f"/api/v1/autopilot/ledger/{bid_id}", json={"status": "won", "message": "Paid"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "won"
        assert response.json()["message"] == "Paid"

        response = await client.patch(f"/api/v1/autopilot/ledger/{bid_id}", json={"status": "lost"})
        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_STATE_TRANSITION"

    @pytest.mark.asyncio
    async def test_resolve_unknown_bid(self, client) -> None:
        response = await client.patch("/api/v1/autopilot/ledger/bid-nope", json={"status": "won"})
        assert response.status_code == 404
        assert response.json()["error"] == "BID_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_resolve_with_bad_status(self, client) -> None:
        response = await client.patch("/api/v1/autopilot/ledger/x", json={"status": "maybe"})
        assert response.status_code == 422
