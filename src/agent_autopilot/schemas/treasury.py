"""Pydantic schemas for the Treasury API."""

from __future__ import annotations

import math
from datetime import datetime  # noqa: TC003 - pydantic resolves annotations at runtime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agent_autopilot.domain.enums import OversightStatus, SpendType  # noqa: TC001


def _finite_or_none(value: float | None) -> float | None:
    """JSON has no infinity; an unknown share is reported as null."""
    if value is None or not math.isfinite(value):
        return None
    return value


class SpendRequestBody(BaseModel):
    """Request body for proposing a treasury spend."""

    type: SpendType
    amount: Decimal = Field(..., gt=0, description="Token amount to spend")
    recipient: str = Field(..., min_length=1, max_length=128)
    metadata: dict = Field(default_factory=dict)


class ResolveOversightRequest(BaseModel):
    approver: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Identity of the human pilot resolving the request",
    )


class SpendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: SpendType
    amount: Decimal
    recipient: str
    metadata: dict


class OversightRequestResponse(BaseModel):
    """A spend held for human approval."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    spend: SpendResponse
    treasury_percentage: float | None = Field(
        description="amount / balance at creation; null when the balance was unknown"
    )
    status: OversightStatus
    created_at: datetime
    approved_by: str | None
    approved_at: datetime | None

    @field_validator("treasury_percentage", mode="before")
    @classmethod
    def finite_percentage(cls, value: float | None) -> float | None:
        return _finite_or_none(value)


class SpendDecisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    approved: bool
    percentage: float | None
    reason: str
    oversight_request: OversightRequestResponse | None

    @field_validator("percentage", mode="before")
    @classmethod
    def finite_percentage(cls, value: float | None) -> float | None:
        return _finite_or_none(value)


class BalanceResponse(BaseModel):
    address: str
    token_address: str
    balance: Decimal
    oversight_threshold: float
