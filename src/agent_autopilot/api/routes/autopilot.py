"""Autopilot engine and bid ledger REST API routes.

The MCP tools in mcp_server/tools.py call the same engine and ledger, so
both surfaces always agree.

Routes:
    POST   /api/v1/autopilot/control          — Start or stop the engine
    GET    /api/v1/autopilot/status           — Engine snapshot + activity feed
    POST   /api/v1/autopilot/cycle            — Run one cycle now
    GET    /api/v1/autopilot/ledger           — Recent bids + stats
    PATCH  /api/v1/autopilot/ledger/{bid_id}  — Resolve a bid manually
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from agent_autopilot.api.deps import get_app_settings, get_engine, get_ledger
from agent_autopilot.config import Settings  # noqa: TC001 - resolved by FastAPI at runtime
from agent_autopilot.domain.enums import ControlAction
from agent_autopilot.domain.exceptions import InvalidControlActionError
from agent_autopilot.logging_config import get_logger
from agent_autopilot.schemas.autopilot import (
    BidResponse,
    ControlRequest,
    ControlResponse,
    CycleSummaryResponse,
    CycleTriggerResponse,
    EngineStatusResponse,
    LedgerResponse,
    LedgerStatsResponse,
    UpdateBidRequest,
)
from agent_autopilot.services.ledger_service import BidLedger  # noqa: TC001
from agent_autopilot.services.scheduler import AutopilotEngine  # noqa: TC001

router = APIRouter(prefix="/api/v1/autopilot", tags=["Autopilot"])
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Engine control
# ---------------------------------------------------------------------------


@router.post(
    "/control",
    response_model=ControlResponse,
    summary="Start or stop the engine",
)
async def control_engine(
    request: ControlRequest,
    engine: AutopilotEngine = Depends(get_engine),
) -> ControlResponse:
    """Start or stop the recurring cycle. Unknown actions are rejected with 400."""
    try:
        action = ControlAction(request.action.strip().lower())
    except ValueError as exc:
        raise InvalidControlActionError(request.action) from exc

    if action == ControlAction.START:
        result = await engine.start()
    else:
        result = await engine.stop()
    logger.info("autopilot.control", action=action.value, success=result.success)
    return ControlResponse.model_validate(result)


@router.get(
    "/status",
    response_model=EngineStatusResponse,
    summary="Engine status",
)
async def engine_status(
    engine: AutopilotEngine = Depends(get_engine),
) -> EngineStatusResponse:
    """Return a snapshot of the engine. Never blocks on a running cycle."""
    return EngineStatusResponse.model_validate(engine.status())


@router.post(
    "/cycle",
    response_model=CycleTriggerResponse,
    summary="Run one cycle now",
)
async def trigger_cycle(
    engine: AutopilotEngine = Depends(get_engine),
) -> CycleTriggerResponse:
    """Run a cycle immediately, unless one is already in flight."""
    summary = await engine.run_cycle()
    if summary is None:
        last = engine.last_result
        return CycleTriggerResponse(
            executed=False,
            message="A cycle is already in progress",
            summary=CycleSummaryResponse.model_validate(last) if last else None,
        )
    return CycleTriggerResponse(
        executed=True,
        message=summary.message,
        summary=CycleSummaryResponse.model_validate(summary),
    )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@router.get(
    "/ledger",
    response_model=LedgerResponse,
    summary="Recent bids and ledger stats",
)
async def get_ledger_view(
    limit: int | None = Query(default=None, ge=1, le=500),
    ledger: BidLedger = Depends(get_ledger),
    settings: Settings = Depends(get_app_settings),
) -> LedgerResponse:
    """Return the newest bids first together with aggregate counts."""
    bids = await ledger.recent(limit or settings.ledger_recent_limit)
    stats = await ledger.stats()
    return LedgerResponse(
        bids=[BidResponse.model_validate(b) for b in bids],
        stats=LedgerStatsResponse.model_validate(stats),
    )


@router.patch(
    "/ledger/{bid_id}",
    response_model=BidResponse,
    summary="Resolve a bid",
)
async def update_bid(
    bid_id: str,
    request: UpdateBidRequest,
    ledger: BidLedger = Depends(get_ledger),
) -> BidResponse:
    """Move a bid to won/lost/failed. Illegal transitions return 409."""
    record = await ledger.update_status(bid_id, request.status, request.message)
    return BidResponse.model_validate(record)
