"""Bid Ledger — durable record of every submission attempt.

The ledger is the engine's memory: the scheduler asks it which tasks are
already taken before submitting, and records each attempt right after.

Each operation runs in its own session/transaction, so concurrent callers
(the engine, the webhook, the REST API) never share a unit of work. The
partial unique index on task_id enforces at most one pending/won bid per
task even if two writers race.
"""

from __future__ import annotations

import secrets
import string
import time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, OperationalError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from agent_autopilot.domain.enums import BidStatus
from agent_autopilot.domain.exceptions import (
    BidNotFoundError,
    DuplicateBidError,
    LedgerWriteError,
)
from agent_autopilot.domain.models import LedgerStats
from agent_autopilot.domain.state_machine import validate_bid_transition
from agent_autopilot.infrastructure.database.engine import session_scope
from agent_autopilot.infrastructure.database.orm_models import BidRecordRow
from agent_autopilot.infrastructure.database.repositories import (
    BidRepository,
    to_bid_record,
)
from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from agent_autopilot.domain.models import BidRecord

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def new_bid_id() -> str:
    """bid-<epoch ms>-<6 random base36 chars>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"bid-{int(time.time() * 1000)}-{suffix}"


def _active_statuses(include_failed: bool) -> tuple[BidStatus, ...]:
    if include_failed:
        return (BidStatus.PENDING, BidStatus.WON, BidStatus.FAILED)
    return (BidStatus.PENDING, BidStatus.WON)


class BidLedger:
    """Service facade over the bid_records table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_records: int = 500,
        write_attempts: int = 3,
    ) -> None:
        self._session_factory = session_factory
        self._max_records = max_records
        self._write_attempts = write_attempts

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def record_attempt(
        self,
        task_id: str,
        agent: str,
        amount: Decimal,
        status: BidStatus,
        message: str = "",
        task_title: str = "",
    ) -> BidRecord:
        """Append a bid record.

        Transient database errors are retried with exponential backoff.

        Raises:
            DuplicateBidError: If the task already has a pending or won bid.
            LedgerWriteError: If the write still fails after retrying.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OperationalError),
                reraise=False,
            ):
                with attempt:
                    record = await self._insert(
                        task_id, agent, amount, status, message, task_title
                    )
        except IntegrityError as exc:
            if "unique" in str(exc.orig).lower():
                logger.warning("ledger.duplicate_bid", task_id=task_id, status=status.value)
                raise DuplicateBidError(task_id) from exc
            logger.critical("ledger.write_failed", task_id=task_id, error=str(exc.orig))
            raise LedgerWriteError(task_id, str(exc.orig)) from exc
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            logger.critical(
                "ledger.write_failed",
                task_id=task_id,
                attempts=self._write_attempts,
                error=str(cause),
            )
            raise LedgerWriteError(task_id, str(cause)) from cause

        logger.info(
            "ledger.bid_recorded",
            bid_id=record.id,
            task_id=task_id,
            agent=agent,
            status=status.value,
        )
        return record

    async def _insert(
        self,
        task_id: str,
        agent: str,
        amount: Decimal,
        status: BidStatus,
        message: str,
        task_title: str,
    ) -> BidRecord:
        async with session_scope(self._session_factory) as session:
            repo = BidRepository(session)
            row = await repo.create(
                BidRecordRow(
                    id=new_bid_id(),
                    task_id=task_id,
                    task_title=task_title,
                    agent=agent,
                    bid_amount=amount,
                    status=status.value,
                    message=message,
                )
            )
            pruned = await repo.prune_resolved(self._max_records)
            if pruned:
                logger.debug("ledger.pruned", removed=pruned)
            return to_bid_record(row)

    async def update_status(
        self,
        bid_id: str,
        new_status: BidStatus,
        message: str | None = None,
    ) -> BidRecord:
        """Move a bid to a new status. The only mutation path for existing rows.

        Raises:
            BidNotFoundError: If the bid does not exist.
            InvalidStateTransitionError: If the bid state machine forbids it.
        """
        async with session_scope(self._session_factory) as session:
            repo = BidRepository(session)
            row = await repo.get_by_id(bid_id)
            if row is None:
                raise BidNotFoundError(bid_id)

            old_status = row.status
            target = validate_bid_transition(old_status, new_status)
            await repo.update_status(row, target, message)
            record = to_bid_record(row)

        logger.info(
            "ledger.status_updated",
            bid_id=bid_id,
            old_status=old_status,
            new_status=target.value,
        )
        return record

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def is_attempted(self, task_id: str, include_failed: bool = False) -> bool:
        """True if the task has a pending/won bid (and failed, if asked)."""
        async with self._session_factory() as session:
            return await BidRepository(session).exists_for_task(
                task_id, _active_statuses(include_failed)
            )

    async def attempted_task_ids(self, include_failed: bool = False) -> set[str]:
        async with self._session_factory() as session:
            return await BidRepository(session).task_ids_with_status(
                _active_statuses(include_failed)
            )

    async def active_bid_for_task(self, task_id: str) -> BidRecord | None:
        async with self._session_factory() as session:
            row = await BidRepository(session).get_active_for_task(task_id)
            return to_bid_record(row) if row else None

    async def get(self, bid_id: str) -> BidRecord:
        async with self._session_factory() as session:
            row = await BidRepository(session).get_by_id(bid_id)
            if row is None:
                raise BidNotFoundError(bid_id)
            return to_bid_record(row)

    async def recent(self, limit: int = 50) -> list[BidRecord]:
        """Newest records first."""
        async with self._session_factory() as session:
            rows = await BidRepository(session).get_recent(limit)
            return [to_bid_record(r) for r in rows]

    async def stats(self) -> LedgerStats:
        async with self._session_factory() as session:
            counts = await BidRepository(session).count_by_status()
        return LedgerStats(
            total=sum(counts.values()),
            pending=counts.get(BidStatus.PENDING.value, 0),
            won=counts.get(BidStatus.WON.value, 0),
            lost=counts.get(BidStatus.LOST.value, 0),
            failed=counts.get(BidStatus.FAILED.value, 0),
        )
