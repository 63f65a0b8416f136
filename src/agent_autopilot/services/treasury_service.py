"""Treasury Service — spend requests and the human oversight workflow.

Coordinates:
    - BalanceSource (read-only treasury balance)
    - TreasuryGuard (threshold decision)
    - OversightRepository (persisted approval queue)
    - OversightNotifier (tells the human pilot)

Both REST routes and MCP tools call into this service.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from agent_autopilot.domain.enums import OversightStatus
from agent_autopilot.domain.exceptions import (
    BalanceUnavailableError,
    OversightNotFoundError,
)
from agent_autopilot.domain.state_machine import validate_oversight_transition
from agent_autopilot.infrastructure.database.engine import session_scope
from agent_autopilot.infrastructure.database.orm_models import OversightRequestRow
from agent_autopilot.infrastructure.database.repositories import (
    OversightRepository,
    to_oversight_request,
)
from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from decimal import Decimal

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from agent_autopilot.domain.models import GuardDecision, OversightRequest, SpendRequest
    from agent_autopilot.domain.protocols import BalanceSource, OversightNotifier
    from agent_autopilot.services.treasury_guard import TreasuryGuard

logger = get_logger(__name__)

HIGH_URGENCY_RATIO = 0.10


def notification_urgency(request: OversightRequest) -> str:
    """HIGH above 10% of treasury (or when the share is unknown), else MEDIUM."""
    if request.treasury_percentage > HIGH_URGENCY_RATIO:
        return "HIGH"
    return "MEDIUM"


class LoggingOversightNotifier:
    """Default oversight channel: structured log events."""

    async def notify_created(self, request: OversightRequest) -> None:
        share = (
            f"{request.treasury_percentage:.2%}"
            if request.percentage_known
            else "unknown share"
        )
        logger.warning(
            "oversight.created",
            request_id=request.id,
            spend_type=request.spend.type.value,
            amount=str(request.spend.amount),
            recipient=request.spend.recipient,
            urgency=notification_urgency(request),
            message=f"Treasury spend requires Human Pilot approval: {share} of treasury",
        )

    async def notify_resolved(self, request: OversightRequest) -> None:
        logger.info(
            "oversight.resolved",
            request_id=request.id,
            status=request.status.value,
            approved_by=request.approved_by,
        )


class TreasuryService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        guard: TreasuryGuard,
        balance_source: BalanceSource,
        notifier: OversightNotifier,
        wallet_address: str = "",
        token_address: str = "",
        expiration_minutes: int = 60,
    ) -> None:
        self._session_factory = session_factory
        self._guard = guard
        self._balance_source = balance_source
        self._notifier = notifier
        self._wallet_address = wallet_address
        self._token_address = token_address
        self._expiration = timedelta(minutes=expiration_minutes)

    @property
    def wallet_address(self) -> str:
        return self._wallet_address

    @property
    def token_address(self) -> str:
        return self._token_address

    @property
    def threshold_ratio(self) -> float:
        return self._guard.threshold_ratio

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    async def get_balance(self) -> Decimal:
        """Raises BalanceUnavailableError if no wallet is configured or the read fails."""
        if not self._wallet_address:
            raise BalanceUnavailableError("Treasury wallet address is not configured")
        return await self._balance_source.get_balance(self._wallet_address)

    async def _balance_or_none(self) -> Decimal | None:
        try:
            return await self.get_balance()
        except BalanceUnavailableError as exc:
            logger.warning("treasury.balance_unavailable", error=exc.message)
            return None

    # ------------------------------------------------------------------
    # Spend requests
    # ------------------------------------------------------------------

    async def request_spend(self, spend: SpendRequest) -> GuardDecision:
        """Evaluate a spend; persist and announce an oversight request if needed."""
        balance = await self._balance_or_none()
        decision = self._guard.evaluate(spend, balance)

        if decision.approved:
            logger.info(
                "treasury.spend_auto_approved",
                spend_type=spend.type.value,
                amount=str(spend.amount),
                percentage=decision.percentage,
            )
            return decision

        request = decision.oversight_request
        async with session_scope(self._session_factory) as session:
            await OversightRepository(session).create(
                OversightRequestRow(
                    id=request.id,
                    spend_type=spend.type.value,
                    amount=spend.amount,
                    recipient=spend.recipient,
                    metadata_json=spend.metadata or None,
                    treasury_percentage=(
                        request.treasury_percentage if request.percentage_known else None
                    ),
                    status=request.status.value,
                    created_at=request.created_at,
                )
            )
        await self._notifier.notify_created(request)
        return decision

    # ------------------------------------------------------------------
    # Oversight queue
    # ------------------------------------------------------------------

    async def list_oversight(self, status: OversightStatus | None = None) -> list[OversightRequest]:
        async with self._session_factory() as session:
            rows = await OversightRepository(session).get_all(status)
            return [to_oversight_request(r) for r in rows]

    async def get_oversight(self, request_id: str) -> OversightRequest:
        async with self._session_factory() as session:
            row = await OversightRepository(session).get_by_id(request_id)
            if row is None:
                raise OversightNotFoundError(request_id)
            return to_oversight_request(row)

    async def approve(self, request_id: str, approver: str) -> OversightRequest:
        return await self._resolve(request_id, OversightStatus.APPROVED, approver)

    async def reject(self, request_id: str, approver: str) -> OversightRequest:
        return await self._resolve(request_id, OversightStatus.REJECTED, approver)

    async def _resolve(
        self,
        request_id: str,
        target: OversightStatus,
        approver: str,
    ) -> OversightRequest:
        """Apply a human decision; a request past its window expires instead.

        Raises:
            OversightNotFoundError: If the request does not exist.
            InvalidStateTransitionError: If it was already resolved.
        """
        async with session_scope(self._session_factory) as session:
            repo = OversightRepository(session)
            row = await repo.get_by_id(request_id)
            if row is None:
                raise OversightNotFoundError(request_id)

            if self._is_stale(row):
                target = OversightStatus.EXPIRED
                approver = None

            new_status = validate_oversight_transition(row.status, target)
            await repo.update_status(row, new_status, actor=approver)
            request = to_oversight_request(row)

        await self._notifier.notify_resolved(request)
        return request

    async def expire_stale(self, now: datetime | None = None) -> int:
        """Move PENDING requests older than the expiry window to EXPIRED."""
        cutoff = (now or datetime.now(UTC)) - self._expiration
        async with session_scope(self._session_factory) as session:
            repo = OversightRepository(session)
            rows = await repo.get_pending_created_before(cutoff)
            for row in rows:
                await repo.update_status(
                    row, validate_oversight_transition(row.status, OversightStatus.EXPIRED)
                )
            expired = [to_oversight_request(r) for r in rows]

        for request in expired:
            await self._notifier.notify_resolved(request)
        if expired:
            logger.info("oversight.expired", count=len(expired))
        return len(expired)

    def _is_stale(self, row: OversightRequestRow) -> bool:
        if row.status != OversightStatus.PENDING.value:
            return False
        created = row.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        return datetime.now(UTC) - created > self._expiration
