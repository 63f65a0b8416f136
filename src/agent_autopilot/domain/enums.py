"""Domain enumerations for the Agent Autopilot.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class TaskStatus(enum.StrEnum):
    """Marketplace task states. Only OPEN tasks are eligible for bidding."""

    OPEN = "open"
    CLAIMED = "claimed"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    DISPUTED = "disputed"


class BidStatus(enum.StrEnum):
    """Lifecycle states of a bid ledger record.

    Transitions are enforced by BidStateMachine; see domain/state_machine.py.
    """

    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    FAILED = "failed"


class OversightStatus(enum.StrEnum):
    """Lifecycle states of a treasury oversight request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class EngineState(enum.StrEnum):
    """States of the cycle scheduler."""

    STOPPED = "STOPPED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"


class ControlAction(enum.StrEnum):
    """Actions accepted by the engine control endpoint."""

    START = "start"
    STOP = "stop"


class TaskCategory(enum.StrEnum):
    """Submission categories, in classification priority order."""

    DATA_COLLECTION = "data_collection"
    RESEARCH = "research"
    BACKEND = "backend"
    SMART_CONTRACT = "smart_contract"
    FRONTEND = "frontend"
    TRADING = "trading"
    CONTENT = "content"
    GENERIC = "generic"


class SpendType(enum.StrEnum):
    """Kinds of treasury spend the squadron can propose."""

    HIRE_SKILL = "HIRE_SKILL"
    BUY_AD_SPACE = "BUY_AD_SPACE"
    MINT_TOKEN = "MINT_TOKEN"
    BURN_TOKEN = "BURN_TOKEN"


class ActivityLevel(enum.StrEnum):
    """Severity of an activity feed entry."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class FeedbackEventType(enum.StrEnum):
    """Marketplace webhook events that resolve a pending bid."""

    SUBMISSION_WON = "submission.won"
    SUBMISSION_LOST = "submission.lost"
    SUBMISSION_REJECTED = "submission.rejected"
