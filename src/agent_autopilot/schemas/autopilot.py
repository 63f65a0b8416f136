"""Pydantic schemas for the Autopilot, ledger and webhook APIs.

These schemas define the request/response shapes for the REST API and
MCP tools. They read straight from the domain dataclasses
(from_attributes), keeping the API separate from the ORM layer.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - pydantic resolves annotations at runtime
from decimal import Decimal  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from agent_autopilot.domain.enums import (  # noqa: TC001
    ActivityLevel,
    BidStatus,
    EngineState,
    FeedbackEventType,
)

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class ControlRequest(BaseModel):
    """Request body for starting or stopping the engine.

    The action is validated by the route so an unknown value yields the
    INVALID_CONTROL_ACTION error rather than a schema error.
    """

    action: str = Field(..., description='Either "start" or "stop"', examples=["start"])


class UpdateBidRequest(BaseModel):
    """Request body for resolving a bid manually."""

    status: BidStatus = Field(..., description="Target status (won, lost or failed)")
    message: str | None = Field(default=None, max_length=2000)


class WebhookPayload(BaseModel):
    bid_id: str | None = Field(default=None, description="Ledger bid id, if known")
    task_id: str | None = Field(default=None, description="Marketplace task id")
    message: str | None = Field(default=None, max_length=2000)


class WebhookEvent(BaseModel):
    """Submission outcome pushed by the marketplace."""

    event: FeedbackEventType
    event_id: str | None = Field(
        default=None,
        description="Delivery id used to ignore repeated deliveries",
    )
    timestamp: datetime | None = None
    payload: WebhookPayload = Field(default_factory=WebhookPayload)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class ControlResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    message: str


class ActivityEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    level: ActivityLevel
    message: str
    detail: str | None
    timestamp: datetime


class TaskSubmissionResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: str
    task_title: str
    agent: str
    reward: Decimal
    score: float
    success: bool
    message: str
    bid_id: str | None


class CycleSummaryResponse(BaseModel):
    """Outcome of one engine cycle."""

    model_config = ConfigDict(from_attributes=True)

    cycle_number: int
    success: bool
    message: str
    started_at: datetime
    finished_at: datetime | None
    total_tasks: int
    open_tasks: int
    already_attempted: int
    new_tasks: int
    submissions_attempted: int
    submissions_successful: int
    submissions_failed: int
    below_threshold: int
    skipped_no_credential: int
    fetch_error: str | None
    ledger_error: str | None
    error: str | None = None
    results: list[TaskSubmissionResultResponse]


class EngineStatusResponse(BaseModel):
    """Point-in-time engine snapshot."""

    model_config = ConfigDict(from_attributes=True)

    is_running: bool
    state: EngineState
    cycle_count: int
    cycle_in_flight: bool
    last_cycle_at: datetime | None
    last_result: CycleSummaryResponse | None
    started_at: datetime | None
    seconds_until_next_cycle: int
    uptime_seconds: int
    activity_log: list[ActivityEntryResponse]


class CycleTriggerResponse(BaseModel):
    """Result of a manual cycle trigger.

    executed is False when a cycle was already in flight; summary then holds
    the most recent completed cycle, if any.
    """

    executed: bool
    message: str
    summary: CycleSummaryResponse | None


class BidResponse(BaseModel):
    """Response schema for a ledger bid record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    task_title: str
    agent: str
    bid_amount: Decimal
    status: BidStatus
    message: str
    created_at: datetime
    updated_at: datetime | None


class LedgerStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    pending: int
    won: int
    lost: int
    failed: int


class LedgerResponse(BaseModel):
    bids: list[BidResponse]
    stats: LedgerStatsResponse


class WebhookResponse(BaseModel):
    success: bool = True
    event: FeedbackEventType
    processed: bool
    duplicate: bool = False
    bid: BidResponse | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
    redis: str = "unknown"
    engine: str = "unknown"
