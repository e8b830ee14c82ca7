"""
EntitySnapshot ORM model.
Last observed state of one entity per snapshot kind, used as the baseline for
the next diff. At most one row per (entity_type, entity_id, snapshot_kind).
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.base import Base, utcnow

SNAPSHOT_KINDS = ("model", "relation", "design_config")


class EntitySnapshot(Base):
    __tablename__ = "entity_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(255), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    snapshot_kind: Mapped[str] = mapped_column(String(32), nullable=False, default="model")
    # Stored as JSON text so an undecodable blob can be detected on read
    data_blob: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "entity_type",
            "entity_id",
            "snapshot_kind",
            name="uq_entity_snapshots_entity_kind",
        ),
        Index("ix_entity_snapshots_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<EntitySnapshot entity_type={self.entity_type!r} "
            f"entity_id={self.entity_id!r} kind={self.snapshot_kind!r}>"
        )
