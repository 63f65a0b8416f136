"""Tests for domain error translation."""

from __future__ import annotations

import pytest

from agent_autopilot.api.middleware import status_for
from agent_autopilot.domain.exceptions import (
    AutopilotError,
    BalanceUnavailableError,
    BidNotFoundError,
    DuplicateBidError,
    InvalidControlActionError,
    InvalidStateTransitionError,
    LedgerWriteError,
    OversightNotFoundError,
)


class TestStatusFor:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (BidNotFoundError("b1"), 404),
            (OversightNotFoundError("o1"), 404),
            (InvalidStateTransitionError("won", "lost"), 409),
            (DuplicateBidError("t1"), 409),
            (BalanceUnavailableError("rpc down"), 503),
            (InvalidControlActionError("pause"), 400),
            (LedgerWriteError("t1", "disk full"), 503),
            (AutopilotError("boom"), 400),
        ],
    )
    def test_mapping(self, exc: AutopilotError, expected: int) -> None:
        assert status_for(exc) == expected

    @pytest.mark.asyncio
    async def test_generated_request_id(self, client) -> None:
        response = await client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 32
