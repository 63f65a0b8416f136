"""SQLAlchemy 2.0 ORM models for the Agent Autopilot.

Two tables:
    1. bid_records        — The bid ledger: one row per submission attempt.
    2. oversight_requests — Treasury spends held for human approval.

Design decisions:
    - String primary keys (bid-<ms>-<rand> for bids, UUID text for oversight)
      so the same schema works on SQLite and PostgreSQL.
    - Decimal for bid and spend amounts (no floating point rounding errors).
    - CHECK constraints on status to prevent invalid enum values at DB level.
    - A partial unique index on bid_records.task_id over pending/won rows:
      a task can never hold two active bids, even across processes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal  # noqa: TC003 - needed at runtime by SQLAlchemy Mapped[]

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

ACTIVE_BID_CLAUSE = "status IN ('pending', 'won')"


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# 1. bid_records
# ---------------------------------------------------------------------------
class BidRecordRow(Base):
    """A submission attempt made by one squadron agent on one task."""

    __tablename__ = "bid_records"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)

    # --- Task ---
    task_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Marketplace task identifier",
    )
    task_title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Task title at submission time (display only)",
    )

    # --- Bid ---
    agent: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Display name of the submitting agent",
    )
    bid_amount: Mapped[Decimal] = mapped_column(
        Numeric(36, 18),
        nullable=False,
        comment="Task reward at submission time",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="pending",
        comment="Bid lifecycle state (guarded by BidStateMachine)",
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Marketplace response or failure reason",
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'won', 'lost', 'failed')",
            name="ck_bid_valid_status",
        ),
        CheckConstraint("bid_amount >= 0", name="ck_bid_non_negative_amount"),
        Index(
            "uq_bid_active_task",
            "task_id",
            unique=True,
            sqlite_where=text(ACTIVE_BID_CLAUSE),
            postgresql_where=text(ACTIVE_BID_CLAUSE),
        ),
        Index("idx_bid_task", "task_id"),
        Index("idx_bid_status", "status"),
        Index("idx_bid_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<BidRecordRow id={self.id} task={self.task_id} status={self.status}>"


# ---------------------------------------------------------------------------
# 2. oversight_requests
# ---------------------------------------------------------------------------
class OversightRequestRow(Base):
    """A treasury spend waiting for (or resolved by) a human pilot."""

    __tablename__ = "oversight_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # --- Spend ---
    spend_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(36, 18), nullable=False)
    recipient: Mapped[str] = mapped_column(String(128), nullable=False)
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        default=None,
        comment="Free-form context supplied with the spend request",
    )
    treasury_percentage: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="amount / balance at creation (null when the balance was unknown)",
    )

    # --- Status ---
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="PENDING",
        comment="Oversight lifecycle state (guarded by OversightStateMachine)",
    )
    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'EXPIRED')",
            name="ck_oversight_valid_status",
        ),
        CheckConstraint("amount > 0", name="ck_oversight_positive_amount"),
        Index("idx_oversight_status", "status"),
        Index("idx_oversight_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<OversightRequestRow id={self.id} type={self.spend_type} "
            f"status={self.status}>"
        )
