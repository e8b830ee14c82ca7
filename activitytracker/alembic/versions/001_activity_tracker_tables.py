"""001_activity_tracker_tables

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

Creates the activity tracker tables:
  - activity_logs
  - entity_snapshots
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    # ── activity_logs ─────────────────────────────────────────────────────────
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("actor_name", sa.String(255), nullable=True),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("entity_type", sa.String(255), nullable=True),
        sa.Column("entity_id", sa.String(255), nullable=True),
        sa.Column("store_id", sa.Integer(), nullable=True),
        sa.Column("website_id", sa.Integer(), nullable=True),
        sa.Column(
            "changes",
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"),
            nullable=True,
        ),
        sa.Column("client_ip", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_activity_logs"),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index(
        "ix_activity_logs_entity_type_id", "activity_logs", ["entity_type", "entity_id"]
    )
    op.create_index("ix_activity_logs_store_id", "activity_logs", ["store_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])

    # ── entity_snapshots ──────────────────────────────────────────────────────
    op.create_table(
        "entity_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_type", sa.String(255), nullable=False),
        sa.Column("entity_id", sa.String(255), nullable=False),
        sa.Column("snapshot_kind", sa.String(32), nullable=False),
        sa.Column("data_blob", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_entity_snapshots"),
        sa.UniqueConstraint(
            "entity_type",
            "entity_id",
            "snapshot_kind",
            name="uq_entity_snapshots_entity_kind",
        ),
    )
    op.create_index("ix_entity_snapshots_created_at", "entity_snapshots", ["created_at"])


def downgrade() -> None:
    op.drop_table("entity_snapshots")
    op.drop_table("activity_logs")
