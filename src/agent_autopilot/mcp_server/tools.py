"""MCP Tool definitions for the Agent Autopilot.

These tools expose the engine, the bid ledger and the treasury guard via the
Model Context Protocol, so agent clients can drive the squadron the same
way the REST API does.

Tools:
    - engine_status: Snapshot of the engine and the latest cycle
    - trigger_cycle: Run one cycle now (skipped if one is in flight)
    - list_bids: Recent ledger entries and stats
    - request_spend: Propose a treasury spend through the oversight guard

The MCP server is mounted into FastAPI at /mcp via app.mount(). Tools have
no FastAPI Depends, so the lifespan binds the service container here.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from agent_autopilot.domain.enums import SpendType
from agent_autopilot.domain.exceptions import AutopilotError
from agent_autopilot.domain.models import SpendRequest
from agent_autopilot.logging_config import get_logger
from agent_autopilot.schemas.autopilot import (
    BidResponse,
    CycleSummaryResponse,
    EngineStatusResponse,
    LedgerStatsResponse,
)
from agent_autopilot.schemas.treasury import SpendDecisionResponse

if TYPE_CHECKING:
    from agent_autopilot.services.container import ServiceContainer

logger = get_logger(__name__)

mcp = FastMCP(
    "Agent Autopilot",
    json_response=True,
)

_container: ServiceContainer | None = None


def bind_container(container: ServiceContainer | None) -> None:
    """Attach (or detach, with None) the running service container."""
    global _container
    _container = container


def _get_container() -> ServiceContainer:
    if _container is None:
        raise RuntimeError("Service container not bound. Is the app running?")
    return _container


@mcp.tool()
async def engine_status() -> dict:
    """Return whether the autopilot is running, its cycle count and the last cycle summary."""
    snapshot = _get_container().engine.status()
    return EngineStatusResponse.model_validate(snapshot).model_dump(mode="json")


@mcp.tool()
async def trigger_cycle() -> dict:
    """Run one discover/match/submit cycle immediately.

    Returns:
        executed=False if a cycle was already running, otherwise the new summary.
    """
    summary = await _get_container().engine.run_cycle()
    if summary is None:
        return {"executed": False, "message": "A cycle is already in progress"}
    return {
        "executed": True,
        "message": summary.message,
        "summary": CycleSummaryResponse.model_validate(summary).model_dump(mode="json"),
    }


@mcp.tool()
async def list_bids(limit: int = 20) -> dict:
    """List the most recent bids (newest first) and aggregate ledger counts.

    Args:
        limit: Maximum number of bids to return (1-500).
    """
    ledger = _get_container().ledger
    bids = await ledger.recent(max(1, min(limit, 500)))
    stats = await ledger.stats()
    return {
        "bids": [BidResponse.model_validate(b).model_dump(mode="json") for b in bids],
        "stats": LedgerStatsResponse.model_validate(stats).model_dump(mode="json"),
    }


@mcp.tool()
async def request_spend(
    spend_type: str,
    amount: str,
    recipient: str,
    reason: str = "",
) -> dict:
    """Propose a treasury spend. Spends above the oversight threshold wait for a human.

    Args:
        spend_type: One of HIRE_SKILL, BUY_AD_SPACE, MINT_TOKEN, BURN_TOKEN.
        amount: Token amount as a decimal string, e.g. "250.5".
        recipient: Recipient address or identifier.
        reason: Optional free-text justification stored with the request.
    """
    try:
        spend = SpendRequest(
            type=SpendType(spend_type.upper()),
            amount=Decimal(amount),
            recipient=recipient,
            metadata={"reason": reason} if reason else {},
        )
    except (ValueError, InvalidOperation) as exc:
        return {"error": "INVALID_SPEND", "message": str(exc)}
    if not spend.amount.is_finite() or spend.amount <= 0:
        return {"error": "INVALID_SPEND", "message": "amount must be positive"}

    try:
        decision = await _get_container().treasury.request_spend(spend)
    except AutopilotError as exc:
        logger.warning("mcp.request_spend.error", error=exc.message, code=exc.code)
        return {"error": exc.code, "message": exc.message}
    return SpendDecisionResponse.model_validate(decision).model_dump(mode="json")
