"""Application services — use case orchestration."""

from agent_autopilot.services.feedback_service import FeedbackService
from agent_autopilot.services.ledger_service import BidLedger
from agent_autopilot.services.scheduler import AutopilotEngine, EngineConfig
from agent_autopilot.services.treasury_guard import TreasuryGuard
from agent_autopilot.services.treasury_service import TreasuryService

__all__ = [
    "AutopilotEngine",
    "BidLedger",
    "EngineConfig",
    "FeedbackService",
    "TreasuryGuard",
    "TreasuryService",
]
