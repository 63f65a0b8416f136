"""Domain value objects for the Agent Autopilot.

Plain frozen dataclasses shared by the matcher, the submission generator,
the ledger and the scheduler. The domain layer has ZERO imports from httpx,
SQLAlchemy or FastAPI.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - used at runtime by dataclass fields
from decimal import Decimal

from agent_autopilot.domain.enums import (
    ActivityLevel,
    BidStatus,
    EngineState,
    OversightStatus,
    SpendType,
    TaskStatus,
)


@dataclass(frozen=True)
class Task:
    """A unit of open work published by the marketplace. Read-only here."""

    id: str
    title: str
    description: str
    reward: Decimal
    tags: tuple[str, ...] = ()
    status: TaskStatus = TaskStatus.OPEN

    @property
    def combined_text(self) -> str:
        """Case-folded title, description and tags used for matching."""
        return " ".join([self.title, self.description, *self.tags]).casefold()


@dataclass(frozen=True)
class AgentProfile:
    """A fixed, configuration-defined bidding identity.

    Attributes:
        key: Role key, e.g. "backend".
        display_name: Name shown in submissions and the ledger.
        agent_key: Marketplace bearer credential ("" when not configured).
        skills: Ordered keyword list used by the matcher.
        expertise: Expertise phrases sampled into submissions.
        deliverables: Deliverable phrases sampled into submissions.
        stack: Tooling tags sampled into submissions.
    """

    key: str
    display_name: str
    agent_key: str = field(default="", repr=False)
    skills: tuple[str, ...] = ()
    expertise: tuple[str, ...] = ()
    deliverables: tuple[str, ...] = ()
    stack: tuple[str, ...] = ()

    @property
    def has_credential(self) -> bool:
        return bool(self.agent_key)


@dataclass(frozen=True)
class MatchResult:
    """Ephemeral output of scoring a task against every profile."""

    agent: AgentProfile
    score: float
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class SubmissionOutcome:
    """Marketplace response to a successful submit call."""

    success: bool
    message: str


@dataclass(frozen=True)
class BidRecord:
    """One ledger entry documenting a submission attempt."""

    id: str
    task_id: str
    task_title: str
    agent: str
    bid_amount: Decimal
    status: BidStatus
    message: str
    created_at: datetime
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LedgerStats:
    """Aggregate bid counts for observability."""

    total: int = 0
    pending: int = 0
    won: int = 0
    lost: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "won": self.won,
            "lost": self.lost,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class SpendRequest:
    """A proposed treasury spend."""

    type: SpendType
    amount: Decimal
    recipient: str
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "amount": str(self.amount),
            "recipient": self.recipient,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class OversightRequest:
    """A spend held for human approval.

    treasury_percentage is amount / balance at creation time; it is
    infinite when the balance was zero or unavailable.
    """

    id: str
    spend: SpendRequest
    treasury_percentage: float
    status: OversightStatus
    created_at: datetime
    approved_by: str | None = None
    approved_at: datetime | None = None

    @property
    def percentage_known(self) -> bool:
        return math.isfinite(self.treasury_percentage)


@dataclass(frozen=True)
class GuardDecision:
    """Result of evaluating a spend against the oversight threshold."""

    approved: bool
    percentage: float
    oversight_request: OversightRequest | None = None
    reason: str = ""


@dataclass
class TaskSubmissionResult:
    """Per-task outcome reported in a cycle summary."""

    task_id: str
    task_title: str
    agent: str
    reward: Decimal
    score: float
    success: bool
    message: str
    bid_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_title": self.task_title,
            "agent": self.agent,
            "reward": str(self.reward),
            "score": self.score,
            "success": self.success,
            "message": self.message,
            "bid_id": self.bid_id,
        }


@dataclass
class CycleSummary:
    """Summary of one discover -> match -> submit -> record pass."""

    cycle_number: int
    started_at: datetime
    finished_at: datetime | None = None
    total_tasks: int = 0
    open_tasks: int = 0
    already_attempted: int = 0
    new_tasks: int = 0
    submissions_attempted: int = 0
    submissions_successful: int = 0
    submissions_failed: int = 0
    below_threshold: int = 0
    skipped_no_credential: int = 0
    fetch_error: str | None = None
    ledger_error: str | None = None
    # Unexpected failure that ended the cycle early
    error: str | None = None
    results: list[TaskSubmissionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.fetch_error is None and self.ledger_error is None and self.error is None

    @property
    def message(self) -> str:
        if self.fetch_error:
            return f"Task fetch failed: {self.fetch_error}"
        if self.ledger_error:
            return f"Ledger unavailable: {self.ledger_error}"
        if self.error:
            return f"Cycle failed: {self.error}"
        if self.submissions_attempted:
            return (
                f"{self.submissions_successful} successful, "
                f"{self.submissions_failed} failed"
            )
        if self.new_tasks == 0:
            return "No new tasks available"
        return "No tasks matched agent skills"

    def to_dict(self) -> dict:
        return {
            "cycle_number": self.cycle_number,
            "success": self.success,
            "message": self.message,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "total_tasks": self.total_tasks,
            "open_tasks": self.open_tasks,
            "already_attempted": self.already_attempted,
            "new_tasks": self.new_tasks,
            "submissions_attempted": self.submissions_attempted,
            "submissions_successful": self.submissions_successful,
            "submissions_failed": self.submissions_failed,
            "below_threshold": self.below_threshold,
            "skipped_no_credential": self.skipped_no_credential,
            "fetch_error": self.fetch_error,
            "ledger_error": self.ledger_error,
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class ActivityEntry:
    """One line of the engine's activity feed."""

    id: str
    level: ActivityLevel
    message: str
    detail: str | None
    timestamp: datetime


@dataclass(frozen=True)
class ControlResult:
    """Outcome of an engine start/stop request."""

    success: bool
    message: str


@dataclass(frozen=True)
class EngineSnapshot:
    """Point-in-time copy of the scheduler state."""

    state: EngineState
    cycle_count: int
    cycle_in_flight: bool
    last_cycle_at: datetime | None
    last_result: CycleSummary | None
    started_at: datetime | None
    seconds_until_next_cycle: int
    uptime_seconds: int
    activity_log: tuple[ActivityEntry, ...] = ()

    @property
    def is_running(self) -> bool:
        return self.state == EngineState.RUNNING
