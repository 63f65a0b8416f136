"""Domain layer — pure business logic with zero framework dependencies."""

from agent_autopilot.domain.enums import (
    BidStatus,
    ControlAction,
    EngineState,
    OversightStatus,
    SpendType,
    TaskCategory,
    TaskStatus,
)
from agent_autopilot.domain.exceptions import (
    AutopilotError,
    BidNotFoundError,
    InvalidStateTransitionError,
    LedgerWriteError,
    SourceUnavailableError,
    SubmitFailedError,
)
from agent_autopilot.domain.models import (
    AgentProfile,
    BidRecord,
    CycleSummary,
    MatchResult,
    OversightRequest,
    SpendRequest,
    Task,
)
from agent_autopilot.domain.state_machine import (
    BidStateMachine,
    EngineStateMachine,
    OversightStateMachine,
)

__all__ = [
    "BidStatus",
    "ControlAction",
    "EngineState",
    "OversightStatus",
    "SpendType",
    "TaskCategory",
    "TaskStatus",
    "AutopilotError",
    "BidNotFoundError",
    "InvalidStateTransitionError",
    "LedgerWriteError",
    "SourceUnavailableError",
    "SubmitFailedError",
    "AgentProfile",
    "BidRecord",
    "CycleSummary",
    "MatchResult",
    "OversightRequest",
    "SpendRequest",
    "Task",
    "BidStateMachine",
    "EngineStateMachine",
    "OversightStateMachine",
]
