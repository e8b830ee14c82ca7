"""
ActivityLog Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

from tracker.diff.formatter import display_changes

ActionKind = Literal["login", "logout", "create", "update", "delete"]


class ActivityLogCreate(BaseModel):
    actor_id: str | None = None
    actor_name: str | None = None
    action: ActionKind
    entity_type: str | None = None
    entity_id: str | None = None
    store_id: int | None = None
    website_id: int | None = None
    changes: Any | None = None
    client_ip: str | None = None
    user_agent: str | None = None


class ActivityLogRead(BaseModel):
    id: uuid.UUID
    actor_id: str | None
    actor_name: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    store_id: int | None
    website_id: int | None
    changes: Any | None
    client_ip: str | None
    user_agent: str | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[misc]
    @property
    def changes_display(self) -> Any | None:
        return display_changes(self.entity_type, self.changes)


class ActivityLogFilter(BaseModel):
    action: ActionKind | None = None
    entity_type: str | None = None
    store_id: int | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    page: int = Field(default=1, ge=1)
    size: int = Field(default=20, ge=1, le=100)


class OptionItem(BaseModel):
    value: str
    label: str


class ActivityOptions(BaseModel):
    actions: list[OptionItem]
    sections: list[OptionItem]
    retention_periods: list[OptionItem]
