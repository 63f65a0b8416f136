"""Treasury Guard — oversight threshold check for proposed spends.

A spend is auto-approved only while it stays at or below the threshold
share of the current treasury balance. Anything above it, or any spend
evaluated against an unknown or empty balance, produces a PENDING
oversight request for the human pilot. The guard decides; it never moves
funds.
"""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from agent_autopilot.domain.enums import OversightStatus
from agent_autopilot.domain.models import GuardDecision, OversightRequest

if TYPE_CHECKING:
    from agent_autopilot.domain.models import SpendRequest

DEFAULT_THRESHOLD = 0.05


def spend_percentage(amount: Decimal, balance: Decimal | None) -> float:
    """amount / balance, or infinity when the balance is unknown or not positive."""
    if balance is None or balance <= 0:
        return math.inf
    return float(amount / balance)


class TreasuryGuard:
    def __init__(self, threshold_ratio: float = DEFAULT_THRESHOLD) -> None:
        if not 0 < threshold_ratio <= 1:
            raise ValueError(f"threshold_ratio must be in (0, 1], got {threshold_ratio}")
        self.threshold_ratio = threshold_ratio
        self._threshold = Decimal(str(threshold_ratio))

    def within_threshold(self, amount: Decimal, balance: Decimal | None) -> bool:
        """Exact check of amount / balance <= threshold, without float rounding."""
        if balance is None or balance <= 0:
            return False
        return amount <= self._threshold * balance

    def evaluate(self, spend: SpendRequest, current_balance: Decimal | None) -> GuardDecision:
        percentage = spend_percentage(spend.amount, current_balance)

        if self.within_threshold(spend.amount, current_balance):
            return GuardDecision(
                approved=True,
                percentage=percentage,
                reason=f"{percentage:.2%} of treasury is within the {self.threshold_ratio:.0%} limit",
            )

        request = OversightRequest(
            id=str(uuid.uuid4()),
            spend=spend,
            treasury_percentage=percentage,
            status=OversightStatus.PENDING,
            created_at=datetime.now(UTC),
        )
        if math.isinf(percentage):
            reason = "Treasury balance unknown; human approval required"
        else:
            reason = (
                f"{percentage:.2%} of treasury exceeds the "
                f"{self.threshold_ratio:.0%} limit; human approval required"
            )
        return GuardDecision(
            approved=False,
            percentage=percentage,
            oversight_request=request,
            reason=reason,
        )
