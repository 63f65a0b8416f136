"""Shared test fixtures for the Agent Autopilot test suite.

Provides:
    - A file-backed SQLite session factory per test (tmp_path)
    - A real BidLedger over that database
    - An in-memory fake marketplace (see tests/factories.py)
    - Async test support via pytest-asyncio
"""

from __future__ import annotations

import pytest
import pytest_asyncio

from agent_autopilot.config import Settings
from agent_autopilot.domain.agents import DEFAULT_PROFILES, build_profiles
from agent_autopilot.infrastructure.database.engine import (
    close_db,
    create_db_engine,
    create_session_factory,
    init_db,
)
from agent_autopilot.services.ledger_service import BidLedger
from tests.factories import ALL_KEYS, FakeTaskSource

# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def squadron():
    """The default four roles, all with credentials."""
    return build_profiles(ALL_KEYS, DEFAULT_PROFILES)


@pytest.fixture
def fake_source() -> FakeTaskSource:
    return FakeTaskSource()


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        redis_enabled=False,
        autopilot_autostart=False,
    )


@pytest_asyncio.fixture
async def session_factory(db_settings):
    engine = create_db_engine(db_settings)
    await init_db(engine)
    yield create_session_factory(engine)
    await close_db(engine)


@pytest_asyncio.fixture
async def ledger(session_factory) -> BidLedger:
    return BidLedger(session_factory)
