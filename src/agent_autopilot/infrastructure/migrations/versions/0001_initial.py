"""Create bid_records and oversight_requests.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_BID_CLAUSE = "status IN ('pending', 'won')"


def upgrade() -> None:
    op.create_table(
        "bid_records",
        sa.Column("id", sa.String(40), primary_key=True),
        sa.Column("task_id", sa.String(128), nullable=False),
        sa.Column("task_title", sa.Text(), nullable=False),
        sa.Column("agent", sa.String(64), nullable=False),
        sa.Column("bid_amount", sa.Numeric(36, 18), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'won', 'lost', 'failed')", name="ck_bid_valid_status"
        ),
        sa.CheckConstraint("bid_amount >= 0", name="ck_bid_non_negative_amount"),
    )
    op.create_index(
        "uq_bid_active_task",
        "bid_records",
        ["task_id"],
        unique=True,
        sqlite_where=sa.text(ACTIVE_BID_CLAUSE),
        postgresql_where=sa.text(ACTIVE_BID_CLAUSE),
    )
    op.create_index("idx_bid_task", "bid_records", ["task_id"])
    op.create_index("idx_bid_status", "bid_records", ["status"])
    op.create_index("idx_bid_created_at", "bid_records", ["created_at"])

    op.create_table(
        "oversight_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("spend_type", sa.String(20), nullable=False),
        sa.Column("amount", sa.Numeric(36, 18), nullable=False),
        sa.Column("recipient", sa.String(128), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("treasury_percentage", sa.Float(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("approved_by", sa.String(128), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'EXPIRED')",
            name="ck_oversight_valid_status",
        ),
        sa.CheckConstraint("amount > 0", name="ck_oversight_positive_amount"),
    )
    op.create_index("idx_oversight_status", "oversight_requests", ["status"])
    op.create_index("idx_oversight_created_at", "oversight_requests", ["created_at"])


def downgrade() -> None:
    op.drop_table("oversight_requests")
    op.drop_table("bid_records")
