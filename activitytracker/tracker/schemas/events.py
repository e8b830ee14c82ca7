"""
Inbound event schemas.
Each host hook maps to one event kind; a batch carries every event fired
during one host request.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

EntityId = Union[str, int]


class Actor(BaseModel):
    id: str
    username: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class EventBase(BaseModel):
    actor: Actor
    store_id: int | None = None
    website_id: int | None = None


# ── Entity lifecycle ──────────────────────────────────────────────────────────

class EntitySavedEvent(EventBase):
    kind: Literal["entity_saved"] = "entity_saved"
    entity_type: str
    entity_id: EntityId | None = None
    is_new: bool = False
    has_changes: bool = True
    data: dict[str, Any] = Field(default_factory=dict)


class EntityDeletedEvent(EventBase):
    kind: Literal["entity_deleted"] = "entity_deleted"
    entity_type: str
    entity_id: EntityId | None = None


class ProductLink(BaseModel):
    link_type: str
    sku: str
    position: int | None = None


class RelationsSavedEvent(EventBase):
    kind: Literal["relations_saved"] = "relations_saved"
    entity_type: str
    entity_id: EntityId
    is_new: bool = False
    links: list[ProductLink] = Field(default_factory=list)


class ChildProductsSavedEvent(EventBase):
    kind: Literal["child_products_saved"] = "child_products_saved"
    entity_type: str
    entity_id: EntityId
    previous_child_ids: list[EntityId] = Field(default_factory=list)
    child_ids: list[EntityId] = Field(default_factory=list)
    skus: dict[str, str] = Field(default_factory=dict)


# ── Authentication ────────────────────────────────────────────────────────────

class AdminLoginEvent(EventBase):
    kind: Literal["admin_login"] = "admin_login"


class AdminLogoutEvent(EventBase):
    kind: Literal["admin_logout"] = "admin_logout"


# ── Configuration ─────────────────────────────────────────────────────────────

class ConfigSavedEvent(EventBase):
    kind: Literal["config_saved"] = "config_saved"
    section: str
    website: str | None = None
    store: str | None = None
    groups: dict[str, Any] = Field(default_factory=dict)


class DesignConfigSavedEvent(EventBase):
    kind: Literal["design_config_saved"] = "design_config_saved"
    scope: str
    scope_id: EntityId
    field_values: dict[str, Any] = Field(default_factory=dict)


class CurrencyRatesSavedEvent(EventBase):
    kind: Literal["currency_rates_saved"] = "currency_rates_saved"
    rates: dict[str, Any] = Field(default_factory=dict)


# ── Orders ────────────────────────────────────────────────────────────────────

class InvoiceCreatedEvent(EventBase):
    kind: Literal["invoice_created"] = "invoice_created"
    invoice_id: EntityId | None = None
    order_id: EntityId
    increment_id: str
    grand_total: float | str | None = None


class OrderStatusAssignedEvent(EventBase):
    kind: Literal["order_status_assigned"] = "order_status_assigned"
    status: str
    state: str
    is_default: bool = False
    visible_on_front: bool = False


class OrderStatusUnassignedEvent(EventBase):
    kind: Literal["order_status_unassigned"] = "order_status_unassigned"
    status: str
    state: str


class OrderCommentAddedEvent(EventBase):
    kind: Literal["order_comment_added"] = "order_comment_added"
    order_id: EntityId
    comment: str
    status: str | None = None
    visible_on_front: bool = False


TrackedEvent = Annotated[
    Union[
        EntitySavedEvent,
        EntityDeletedEvent,
        RelationsSavedEvent,
        ChildProductsSavedEvent,
        AdminLoginEvent,
        AdminLogoutEvent,
        ConfigSavedEvent,
        DesignConfigSavedEvent,
        CurrencyRatesSavedEvent,
        InvoiceCreatedEvent,
        OrderStatusAssignedEvent,
        OrderStatusUnassignedEvent,
        OrderCommentAddedEvent,
    ],
    Field(discriminator="kind"),
]


class EventBatch(BaseModel):
    events: list[TrackedEvent] = Field(min_length=1, max_length=500)


class EventBatchResult(BaseModel):
    processed: int
