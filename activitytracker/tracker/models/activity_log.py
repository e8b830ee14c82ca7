"""
ActivityLog ORM model.
Immutable, append-only audit trail of admin actions. Rows are only ever
removed by the retention sweep.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.base import Base, JSONType, utcnow


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    store_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    website_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    changes: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_activity_logs_action", "action"),
        Index("ix_activity_logs_entity_type_id", "entity_type", "entity_id"),
        Index("ix_activity_logs_store_id", "store_id"),
        Index("ix_activity_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog id={self.id} actor={self.actor_name!r} "
            f"action={self.action!r} entity_type={self.entity_type!r}>"
        )
