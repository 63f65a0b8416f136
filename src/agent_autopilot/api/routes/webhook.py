"""Marketplace webhook.

Routes:
    POST   /api/v1/webhook/marketplace  — Submission outcome events
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_autopilot.api.deps import get_feedback
from agent_autopilot.logging_config import get_logger
from agent_autopilot.schemas.autopilot import BidResponse, WebhookEvent, WebhookResponse
from agent_autopilot.services.feedback_service import FeedbackService  # noqa: TC001

router = APIRouter(prefix="/api/v1/webhook", tags=["Webhook"])
logger = get_logger(__name__)


@router.post(
    "/marketplace",
    response_model=WebhookResponse,
    summary="Receive a marketplace submission event",
)
async def marketplace_webhook(
    event: WebhookEvent,
    feedback: FeedbackService = Depends(get_feedback),
) -> WebhookResponse:
    """Resolve the matching bid. Repeated deliveries are acknowledged without effect."""
    logger.info("webhook.received", feedback_event=event.event.value, event_id=event.event_id)
    result = await feedback.handle(
        event.event,
        event_id=event.event_id,
        bid_id=event.payload.bid_id,
        task_id=event.payload.task_id,
        message=event.payload.message,
    )
    return WebhookResponse(
        event=event.event,
        processed=result.processed,
        duplicate=result.duplicate,
        bid=BidResponse.model_validate(result.bid) if result.bid else None,
    )
