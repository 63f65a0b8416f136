"""Marketplace feedback — resolves pending bids from webhook events.

The marketplace reports the outcome of a submission with one of:
    submission.won       -> won
    submission.lost      -> lost
    submission.rejected  -> lost

Deliveries are at-least-once, so an event_id is claimed in Redis before the
ledger is touched; a repeated event_id is acknowledged without effect. If
processing fails the claim is released so the retry can go through.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from agent_autopilot.domain.enums import BidStatus, FeedbackEventType
from agent_autopilot.domain.exceptions import BidNotFoundError
from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from agent_autopilot.domain.models import BidRecord
    from agent_autopilot.infrastructure.redis_client import IdempotencyStore
    from agent_autopilot.services.ledger_service import BidLedger

logger = get_logger(__name__)

EVENT_OUTCOMES = {
    FeedbackEventType.SUBMISSION_WON: BidStatus.WON,
    FeedbackEventType.SUBMISSION_LOST: BidStatus.LOST,
    FeedbackEventType.SUBMISSION_REJECTED: BidStatus.LOST,
}


@dataclass(frozen=True)
class FeedbackResult:
    processed: bool
    duplicate: bool = False
    bid: BidRecord | None = None


class FeedbackService:
    def __init__(self, ledger: BidLedger, idempotency: IdempotencyStore | None = None) -> None:
        self._ledger = ledger
        self._idempotency = idempotency

    async def handle(
        self,
        event: FeedbackEventType,
        event_id: str | None = None,
        bid_id: str | None = None,
        task_id: str | None = None,
        message: str | None = None,
    ) -> FeedbackResult:
        """Apply one feedback event to the ledger.

        Raises:
            BidNotFoundError: If no bid matches the bid_id or task_id.
            InvalidStateTransitionError: If the bid is already resolved differently.
        """
        key = f"feedback:{event_id}" if event_id else None
        if key and self._idempotency is None:
            logger.warning("feedback.idempotency_disabled", event_id=event_id)
        elif key and not await self._idempotency.claim(key):
            logger.info("feedback.duplicate_ignored", event_id=event_id, feedback_event=event.value)
            return FeedbackResult(processed=False, duplicate=True)

        try:
            bid = await self._apply(event, bid_id, task_id, message)
        except Exception:
            if key and self._idempotency is not None:
                await self._idempotency.release(key)
            raise

        logger.info(
            "feedback.applied",
            event_id=event_id,
            feedback_event=event.value,
            bid_id=bid.id,
            status=bid.status.value,
        )
        return FeedbackResult(processed=True, bid=bid)

    async def _apply(
        self,
        event: FeedbackEventType,
        bid_id: str | None,
        task_id: str | None,
        message: str | None,
    ) -> BidRecord:
        if not bid_id:
            if not task_id:
                raise BidNotFoundError("<missing bid_id and task_id>")
            active = await self._ledger.active_bid_for_task(task_id)
            if active is None:
                raise BidNotFoundError(f"task:{task_id}")
            bid_id = active.id
        return await self._ledger.update_status(bid_id, EVENT_OUTCOMES[event], message)
