"""Tests for the MCP tools, called directly against a bound container."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from agent_autopilot.config import Settings
from agent_autopilot.domain.exceptions import BalanceUnavailableError
from agent_autopilot.mcp_server import tools
from agent_autopilot.services.container import build_container
from tests.factories import FakeBalanceSource, make_task


@pytest.fixture
def balance_source() -> FakeBalanceSource:
    return FakeBalanceSource(balance=Decimal("10000"))


@pytest_asyncio.fixture
async def bound(tmp_path, fake_source, balance_source):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'mcp.db'}",
        redis_enabled=False,
        autopilot_autostart=False,
        autopilot_submit_delay_seconds=0.0,
        backend_api_key="k-backend",
        treasury_wallet_address="0x" + "b" * 40,
    )
    container = await build_container(settings, source=fake_source, balance_source=balance_source)
    tools.bind_container(container)
    yield container
    tools.bind_container(None)
    await container.aclose()


class TestUnbound:
    @pytest.mark.asyncio
    async def test_raises_without_container(self) -> None:
        tools.bind_container(None)
        with pytest.raises(RuntimeError, match="not bound"):
            await tools.engine_status()


class TestEngineTools:
    @pytest.mark.asyncio
    async def test_engine_status(self, bound) -> None:
        status = await tools.engine_status()

        assert status["is_running"] is False
        assert status["state"] == "STOPPED"
        assert status["cycle_count"] == 0

    @pytest.mark.asyncio
    async def test_trigger_cycle_and_list_bids(self, bound, fake_source) -> None:
        fake_source.tasks = [make_task("t1", title="Python scraping bot", reward="300")]

        result = await tools.trigger_cycle()

        assert result["executed"] is True
        assert result["summary"]["submissions_successful"] == 1

        listing = await tools.list_bids(limit=5)
        assert listing["stats"]["pending"] == 1
        assert listing["bids"][0]["task_id"] == "t1"
        assert Decimal(listing["bids"][0]["bid_amount"]) == Decimal("300")

    @pytest.mark.asyncio
    async def test_trigger_cycle_in_flight(self, bound) -> None:
        bound.engine.run_cycle = AsyncMock(return_value=None)

        result = await tools.trigger_cycle()

        assert result == {"executed": False, "message": "A cycle is already in progress"}

    @pytest.mark.asyncio
    async def test_list_bids_clamps_limit(self, bound) -> None:
        listing = await tools.list_bids(limit=0)
        assert listing["bids"] == []
        assert listing["stats"]["total"] == 0


class TestRequestSpend:
    @pytest.mark.asyncio
    async def test_small_spend(self, bound) -> None:
        result = await tools.request_spend("hire_skill", "100", "0xskill", reason="logo")

        assert result["approved"] is True
        assert result["oversight_request"] is None

    @pytest.mark.asyncio
    async def test_large_spend_held(self, bound) -> None:
        result = await tools.request_spend("BUY_AD_SPACE", "2000", "0xads")

        assert result["approved"] is False
        assert result["oversight_request"]["status"] == "PENDING"
        assert result["oversight_request"]["spend"]["type"] == "BUY_AD_SPACE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("spend_type", "amount"),
        [
            ("BUY_YACHT", "10"),
            ("HIRE_SKILL", "ten"),
            ("HIRE_SKILL", "NaN"),
            ("HIRE_SKILL", "-5"),
        ],
    )
    async def test_invalid_input(self, bound, spend_type: str, amount: str) -> None:
        result = await tools.request_spend(spend_type, amount, "0xskill")
        assert result["error"] == "INVALID_SPEND"

    @pytest.mark.asyncio
    async def test_unknown_balance_holds_spend(self, bound, balance_source) -> None:
        balance_source.error = BalanceUnavailableError("rpc down")

        result = await tools.request_spend("HIRE_SKILL", "10", "0xskill")

        assert result["approved"] is False
        assert result["percentage"] is None
        assert result["oversight_request"]["treasury_percentage"] is None
