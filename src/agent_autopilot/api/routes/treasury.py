"""Treasury REST API routes.

Routes:
    POST   /api/v1/treasury/spend                   — Propose a spend (guarded)
    GET    /api/v1/treasury/oversight               — List oversight requests
    POST   /api/v1/treasury/oversight/{id}/approve  — Human pilot approves
    POST   /api/v1/treasury/oversight/{id}/reject   — Human pilot rejects
    GET    /api/v1/treasury/balance                 — Current treasury balance
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from agent_autopilot.api.deps import get_treasury
from agent_autopilot.domain.enums import OversightStatus  # noqa: TC001
from agent_autopilot.domain.models import SpendRequest
from agent_autopilot.logging_config import get_logger
from agent_autopilot.schemas.treasury import (
    BalanceResponse,
    OversightRequestResponse,
    ResolveOversightRequest,
    SpendDecisionResponse,
    SpendRequestBody,
)
from agent_autopilot.services.treasury_service import TreasuryService  # noqa: TC001

router = APIRouter(prefix="/api/v1/treasury", tags=["Treasury"])
logger = get_logger(__name__)


@router.post(
    "/spend",
    response_model=SpendDecisionResponse,
    summary="Propose a treasury spend",
)
async def request_spend(
    request: SpendRequestBody,
    treasury: TreasuryService = Depends(get_treasury),
) -> SpendDecisionResponse:
    """Auto-approve small spends; queue the rest for human oversight."""
    decision = await treasury.request_spend(
        SpendRequest(
            type=request.type,
            amount=request.amount,
            recipient=request.recipient,
            metadata=request.metadata,
        )
    )
    return SpendDecisionResponse.model_validate(decision)


@router.get(
    "/oversight",
    response_model=list[OversightRequestResponse],
    summary="List oversight requests",
)
async def list_oversight(
    status: OversightStatus | None = Query(default=None),
    treasury: TreasuryService = Depends(get_treasury),
) -> list[OversightRequestResponse]:
    """Expire stale requests, then list newest first."""
    await treasury.expire_stale()
    requests = await treasury.list_oversight(status)
    return [OversightRequestResponse.model_validate(r) for r in requests]


@router.post(
    "/oversight/{request_id}/approve",
    response_model=OversightRequestResponse,
    summary="Approve an oversight request",
)
async def approve_oversight(
    request_id: str,
    request: ResolveOversightRequest,
    treasury: TreasuryService = Depends(get_treasury),
) -> OversightRequestResponse:
    resolved = await treasury.approve(request_id, request.approver)
    return OversightRequestResponse.model_validate(resolved)


@router.post(
    "/oversight/{request_id}/reject",
    response_model=OversightRequestResponse,
    summary="Reject an oversight request",
)
async def reject_oversight(
    request_id: str,
    request: ResolveOversightRequest,
    treasury: TreasuryService = Depends(get_treasury),
) -> OversightRequestResponse:
    resolved = await treasury.reject(request_id, request.approver)
    return OversightRequestResponse.model_validate(resolved)


@router.get(
    "/balance",
    response_model=BalanceResponse,
    summary="Treasury balance",
)
async def get_balance(
    treasury: TreasuryService = Depends(get_treasury),
) -> BalanceResponse:
    """Read the treasury token balance. 503 if the chain cannot be reached."""
    balance = await treasury.get_balance()
    return BalanceResponse(
        address=treasury.wallet_address,
        token_address=treasury.token_address,
        balance=balance,
        oversight_threshold=treasury.threshold_ratio,
    )
