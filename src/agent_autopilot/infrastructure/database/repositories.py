"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from agent_autopilot.domain.enums import BidStatus, OversightStatus, SpendType
from agent_autopilot.domain.models import BidRecord, OversightRequest, SpendRequest
from agent_autopilot.infrastructure.database.orm_models import (
    BidRecordRow,
    OversightRequestRow,
)

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy.ext.asyncio import AsyncSession


def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; every stored timestamp is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_bid_record(row: BidRecordRow) -> BidRecord:
    return BidRecord(
        id=row.id,
        task_id=row.task_id,
        task_title=row.task_title,
        agent=row.agent,
        bid_amount=row.bid_amount,
        status=BidStatus(row.status),
        message=row.message,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def to_oversight_request(row: OversightRequestRow) -> OversightRequest:
    return OversightRequest(
        id=row.id,
        spend=SpendRequest(
            type=SpendType(row.spend_type),
            amount=row.amount,
            recipient=row.recipient,
            metadata=row.metadata_json or {},
        ),
        treasury_percentage=(
            math.inf if row.treasury_percentage is None else row.treasury_percentage
        ),
        status=OversightStatus(row.status),
        created_at=_aware(row.created_at),
        approved_by=row.approved_by,
        approved_at=_aware(row.approved_at),
    )


class BidRepository:
    """Data access for the bid ledger."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, row: BidRecordRow) -> BidRecordRow:
        """Insert a new bid record."""
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_id(self, bid_id: str) -> BidRecordRow | None:
        result = await self._session.execute(
            select(BidRecordRow).where(BidRecordRow.id == bid_id)
        )
        return result.scalar_one_or_none()

    async def get_active_for_task(self, task_id: str) -> BidRecordRow | None:
        """Return the pending or won bid for a task, if any."""
        result = await self._session.execute(
            select(BidRecordRow)
            .where(
                BidRecordRow.task_id == task_id,
                BidRecordRow.status.in_([BidStatus.PENDING, BidStatus.WON]),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def exists_for_task(self, task_id: str, statuses: Collection[BidStatus]) -> bool:
        result = await self._session.execute(
            select(BidRecordRow.id)
            .where(
                BidRecordRow.task_id == task_id,
                BidRecordRow.status.in_([s.value for s in statuses]),
            )
            .limit(1)
        )
        return result.first() is not None

    async def task_ids_with_status(self, statuses: Collection[BidStatus]) -> set[str]:
        result = await self._session.execute(
            select(BidRecordRow.task_id)
            .where(BidRecordRow.status.in_([s.value for s in statuses]))
            .distinct()
        )
        return set(result.scalars().all())

    async def get_recent(self, limit: int) -> list[BidRecordRow]:
        """Fetch the newest bids first."""
        result = await self._session.execute(
            select(BidRecordRow)
            .order_by(BidRecordRow.created_at.desc(), BidRecordRow.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        result = await self._session.execute(
            select(BidRecordRow.status, func.count()).group_by(BidRecordRow.status)
        )
        return {status: count for status, count in result.all()}

    async def update_status(
        self,
        row: BidRecordRow,
        new_status: BidStatus,
        message: str | None = None,
    ) -> BidRecordRow:
        """Update the status of a bid (call AFTER state machine validation)."""
        row.status = new_status.value
        if message is not None:
            row.message = message
        row.updated_at = datetime.now(UTC)
        await self._session.flush()
        return row

    async def prune_resolved(self, keep: int) -> int:
        """Delete lost/failed rows that fall outside the newest `keep` records.

        Pending and won rows are never deleted.
        """
        stale_ids = (
            select(BidRecordRow.id)
            .order_by(BidRecordRow.created_at.desc(), BidRecordRow.id.desc())
            .offset(keep)
        )
        result = await self._session.execute(
            select(BidRecordRow.id).where(
                BidRecordRow.id.in_(stale_ids),
                BidRecordRow.status.in_([BidStatus.LOST.value, BidStatus.FAILED.value]),
            )
        )
        ids = list(result.scalars().all())
        if not ids:
            return 0
        await self._session.execute(delete(BidRecordRow).where(BidRecordRow.id.in_(ids)))
        return len(ids)


class OversightRepository:
    """Data access for treasury oversight requests."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, row: OversightRequestRow) -> OversightRequestRow:
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_id(self, request_id: str) -> OversightRequestRow | None:
        result = await self._session.execute(
            select(OversightRequestRow).where(OversightRequestRow.id == request_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self, status: OversightStatus | None = None) -> list[OversightRequestRow]:
        """Fetch requests newest first, optionally filtered by status."""
        stmt = select(OversightRequestRow).order_by(OversightRequestRow.created_at.desc())
        if status is not None:
            stmt = stmt.where(OversightRequestRow.status == status.value)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending_created_before(self, cutoff: datetime) -> list[OversightRequestRow]:
        result = await self._session.execute(
            select(OversightRequestRow).where(
                OversightRequestRow.status == OversightStatus.PENDING.value,
                OversightRequestRow.created_at < cutoff,
            )
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        row: OversightRequestRow,
        new_status: OversightStatus,
        actor: str | None = None,
    ) -> OversightRequestRow:
        """Record a resolution (call AFTER state machine validation)."""
        row.status = new_status.value
        if actor is not None:
            row.approved_by = actor
            row.approved_at = datetime.now(UTC)
        await self._session.flush()
        return row
