"""Fixtures for API tests.

The app is driven in-process through httpx.ASGITransport, which skips the
lifespan, so the container is built here against a temp SQLite file and
attached to app.state directly.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from agent_autopilot.config import Settings
from agent_autopilot.main import create_app
from agent_autopilot.services.container import build_container
from tests.factories import FakeBalanceSource

WALLET = "0x" + "a" * 40


@pytest.fixture
def api_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        redis_enabled=False,
        autopilot_autostart=False,
        autopilot_submit_delay_seconds=0.0,
        autopilot_cycle_interval_seconds=3600,
        submission_seed=1,
        backend_api_key="k-backend",
        contract_api_key="k-contract",
        frontend_api_key="k-frontend",
        research_api_key="k-research",
        treasury_wallet_address=WALLET,
        treasury_token_address="0xtoken",
    )


@pytest.fixture
def balance_source() -> FakeBalanceSource:
    return FakeBalanceSource()


@pytest_asyncio.fixture
async def container(api_settings, fake_source, balance_source):
    c = await build_container(api_settings, source=fake_source, balance_source=balance_source)
    yield c
    await c.aclose()


@pytest_asyncio.fixture
async def client(container):
    app = create_app()
    app.state.container = container
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
