"""FastAPI dependency injection providers.

These are used with Depends() in route handlers. Every long-lived service
lives on the ServiceContainer stored in app.state by the lifespan hook.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request  # noqa: TC002 - FastAPI inspects the annotation at runtime

if TYPE_CHECKING:
    from agent_autopilot.config import Settings
    from agent_autopilot.services.container import ServiceContainer
    from agent_autopilot.services.feedback_service import FeedbackService
    from agent_autopilot.services.ledger_service import BidLedger
    from agent_autopilot.services.scheduler import AutopilotEngine
    from agent_autopilot.services.treasury_service import TreasuryService


def get_container(request: Request) -> ServiceContainer:
    """Provide the service container built at startup."""
    return request.app.state.container


def get_engine(request: Request) -> AutopilotEngine:
    """Provide the process-wide autopilot engine."""
    return get_container(request).engine


def get_ledger(request: Request) -> BidLedger:
    return get_container(request).ledger


def get_treasury(request: Request) -> TreasuryService:
    return get_container(request).treasury


def get_feedback(request: Request) -> FeedbackService:
    return get_container(request).feedback


def get_app_settings(request: Request) -> Settings:
    """Provide the application settings."""
    return get_container(request).settings
