"""
Change tracker.
Turns host events into activity records: checks the enabled flag and section
exclusions, diffs entity data against the stored snapshot, writes the record
and refreshes the snapshot. Every handler is a boundary that never raises.
"""
from __future__ import annotations

import functools
import json
import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.core.config import Settings
from tracker.core.sections import SectionMap
from tracker.diff.engine import DiffEngine
from tracker.diff.formatter import redact_tree
from tracker.models.activity_log import ActivityLog
from tracker.schemas.events import (
    Actor,
    AdminLoginEvent,
    AdminLogoutEvent,
    ChildProductsSavedEvent,
    ConfigSavedEvent,
    CurrencyRatesSavedEvent,
    DesignConfigSavedEvent,
    EntityDeletedEvent,
    EntitySavedEvent,
    InvoiceCreatedEvent,
    OrderCommentAddedEvent,
    OrderStatusAssignedEvent,
    OrderStatusUnassignedEvent,
    RelationsSavedEvent,
)
from tracker.services.activity_service import ActivityService
from tracker.services.context import ContextResolver, StaticContext
from tracker.services.dedup import DedupScope
from tracker.services.snapshot_service import SnapshotStore

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

RELATION_FIELDS: dict[str, str] = {
    "upsell": "up_sell_products",
    "crosssell": "cross_sell_products",
    "related": "related_products",
}
CONFIG_SAVE_LATCH = "store_configuration_saved"


def boundary(func: F) -> F:
    """Log and swallow any failure so the host operation is never affected."""

    @functools.wraps(func)
    async def wrapper(self: "ChangeTracker", *args: Any, **kwargs: Any) -> Any:
        try:
            return await func(self, *args, **kwargs)
        except Exception as exc:
            logger.error("ChangeTracker.%s error: %s", func.__name__, exc, exc_info=True)
            return None

    return wrapper  # type: ignore[return-value]


class ChangeTracker:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        section_map: SectionMap,
        *,
        engine: DiffEngine | None = None,
        snapshots: SnapshotStore | None = None,
        writer: ActivityService | None = None,
    ) -> None:
        self.settings = settings
        self.section_map = section_map
        self.engine = engine or DiffEngine()
        self.snapshots = snapshots or SnapshotStore(session_factory)
        self.writer = writer or ActivityService(session_factory)

    # ── Gates ─────────────────────────────────────────────────────────────────

    def _section_enabled(self, section: str | None = None) -> bool:
        return self.settings.TRACKER_ENABLED and not self.settings.is_section_excluded(section)

    def _tracks_entity(self, entity_type: str) -> bool:
        if not self._section_enabled(self.section_map.section_for(entity_type)):
            return False
        return not self.section_map.is_ignored(entity_type)

    async def _record(
        self,
        actor: Actor,
        action: str,
        entity_type: str | None,
        entity_id: Any,
        changes: Any,
        context: ContextResolver | None,
    ) -> ActivityLog | None:
        result = await self.writer.record(
            actor=actor,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            changes=changes,
            context=context,
        )
        if not result.ok:
            logger.error("%s", result.error)
            return None
        return result.value

    async def _save_snapshot(self, entity_type: str, entity_id: Any, data: Any, kind: str) -> None:
        result = await self.snapshots.save(entity_type, entity_id, data, kind)
        if not result.ok:
            logger.error("%s", result.error)

    # ── Entity lifecycle ──────────────────────────────────────────────────────

    @boundary
    async def entity_saved(
        self, event: EntitySavedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        """
        Create logs the full state. Update logs the diff against the model
        snapshot, or the full state when there is no usable snapshot. The
        snapshot is refreshed whether or not anything was logged.
        """
        if not self._tracks_entity(event.entity_type) or not event.has_changes:
            return None

        current = self.snapshots.prepare(event.data)
        previous = None
        # Without an id there is no snapshot to read, so the full state is logged
        if not event.is_new and event.entity_id is not None:
            found = await self.snapshots.get(event.entity_type, event.entity_id, "model")
            if not found.ok:
                logger.error("%s", found.error)
                return None
            previous = found.value

        try:
            if event.is_new:
                return await self._record(
                    event.actor, "create", event.entity_type, event.entity_id,
                    redact_tree(current), context,
                )
            if previous:
                changes = self.engine.diff(previous, current) or None
            else:
                changes = redact_tree(current)
            if not changes:
                return None
            return await self._record(
                event.actor, "update", event.entity_type, event.entity_id,
                changes, context,
            )
        finally:
            if event.entity_id is not None:
                await self._save_snapshot(event.entity_type, event.entity_id, current, "model")

    @boundary
    async def entity_deleted(
        self, event: EntityDeletedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self._tracks_entity(event.entity_type):
            return None
        return await self._record(
            event.actor, "delete", event.entity_type, event.entity_id, None, context
        )

    @boundary
    async def relations_saved(
        self, event: RelationsSavedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        """Linked-product lists are compared as whole lists against the relation snapshot."""
        if not self._section_enabled("products") or event.is_new:
            return None

        current: dict[str, list[dict[str, Any]]] = {name: [] for name in RELATION_FIELDS.values()}
        for link in event.links:
            field = RELATION_FIELDS.get(link.link_type)
            if field is not None:
                current[field].append({"sku": link.sku, "position": link.position})

        previous = await self.snapshots.get(event.entity_type, event.entity_id, "relation")
        if not previous.ok:
            logger.error("%s", previous.error)
            return None

        entry = None
        if previous.value:
            changes = {
                field: current[field]
                for field in RELATION_FIELDS.values()
                if json.dumps(previous.value.get(field, [])) != json.dumps(current[field])
            }
            if changes:
                entry = await self._record(
                    event.actor, "update", event.entity_type, event.entity_id,
                    changes, context,
                )

        await self._save_snapshot(event.entity_type, event.entity_id, current, "relation")
        return entry

    @boundary
    async def child_products_saved(
        self, event: ChildProductsSavedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self._section_enabled("products"):
            return None

        previous_ids = [str(child_id) for child_id in event.previous_child_ids]
        current_ids = [str(child_id) for child_id in event.child_ids]
        added = [child_id for child_id in current_ids if child_id not in previous_ids]
        removed = [child_id for child_id in previous_ids if child_id not in current_ids]
        if not added and not removed:
            return None

        def describe(ids: list[str]) -> list[dict[str, Any]]:
            return [{"id": child_id, "sku": event.skus.get(child_id)} for child_id in ids]

        changes: dict[str, Any] = {}
        if added:
            changes["added"] = describe(added)
        if removed:
            changes["removed"] = describe(removed)
        return await self._record(
            event.actor, "update", event.entity_type, event.entity_id, changes, context
        )

    # ── Authentication ────────────────────────────────────────────────────────

    @boundary
    async def admin_login(
        self, event: AdminLoginEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self.settings.TRACKER_ENABLED:
            return None
        return await self._record(event.actor, "login", "Admin Login", None, None, context)

    @boundary
    async def admin_logout(
        self, event: AdminLogoutEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self.settings.TRACKER_ENABLED:
            return None
        return await self._record(event.actor, "logout", "Admin Logout", None, None, context)

    # ── Configuration ─────────────────────────────────────────────────────────

    @boundary
    async def config_saved(
        self,
        event: ConfigSavedEvent,
        *,
        dedup: DedupScope,
        context: ContextResolver | None = None,
    ) -> ActivityLog | None:
        """Logged once per request, however many config saves the request performs."""
        if not self._section_enabled("store_configurations"):
            return None
        if not dedup.acquire_latch(CONFIG_SAVE_LATCH):
            return None

        changed_fields: dict[str, Any] = {}
        for group_id, group in event.groups.items():
            fields = group.get("fields") if isinstance(group, dict) else None
            if not isinstance(fields, dict):
                continue
            for field_id, field in fields.items():
                if isinstance(field, dict) and field.get("value") is not None:
                    changed_fields[f"{group_id}/{field_id}"] = field["value"]

        changes = {
            "action": "configuration_updated",
            "section": event.section,
            "website": event.website,
            "store": event.store,
            "changed_fields": redact_tree(changed_fields),
        }
        return await self._record(
            event.actor, "update", "Store Configuration", None, changes, context
        )

    @boundary
    async def design_config_saved(
        self, event: DesignConfigSavedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self._section_enabled("design_configurations"):
            return None

        entity_type = "Design Configuration"
        entity_id = f"{event.scope}_{event.scope_id}"
        current = self.snapshots.prepare(event.field_values)

        previous = await self.snapshots.get(entity_type, entity_id, "design_config")
        if not previous.ok:
            logger.error("%s", previous.error)
            return None

        changes: dict[str, Any] | None = {
            "action": "design_configuration_updated",
            "scope": event.scope,
            "scope_id": event.scope_id,
        }
        if previous.value:
            changed_fields = {
                path: value
                for path, value in current.items()
                if previous.value.get(path) != value
            }
            if changed_fields:
                changes["changed_fields"] = changed_fields
            else:
                changes = None
        else:
            changes["all_fields"] = current

        entry = None
        if changes:
            entry = await self._record(
                event.actor, "update", entity_type, entity_id, changes, context
            )
        await self._save_snapshot(entity_type, entity_id, current, "design_config")
        return entry

    @boundary
    async def currency_rates_saved(
        self, event: CurrencyRatesSavedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self.settings.TRACKER_ENABLED:
            return None
        changes = {"action": "currency_rates_updated", "rates": event.rates}
        return await self._record(event.actor, "update", "Currency Rates", None, changes, context)

    # ── Orders ────────────────────────────────────────────────────────────────

    @boundary
    async def invoice_created(
        self,
        event: InvoiceCreatedEvent,
        *,
        dedup: DedupScope,
        context: ContextResolver | None = None,
    ) -> ActivityLog | None:
        """Register hooks can fire repeatedly for one invoice; only the first is logged."""
        if not self._section_enabled("orders"):
            return None
        if not dedup.first_time(f"invoice:{event.order_id}_{event.increment_id}"):
            return None

        changes = {
            "action": "invoice_created",
            "order_id": event.order_id,
            "invoice_increment_id": event.increment_id,
            "grand_total": event.grand_total,
        }
        return await self._record(
            event.actor, "create", "Invoice Creation", event.invoice_id, changes, context
        )

    @boundary
    async def order_status_assigned(
        self, event: OrderStatusAssignedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self._section_enabled("orders"):
            return None
        changes = {
            "action": "assign_state",
            "status": event.status,
            "state": event.state,
            "is_default": event.is_default,
            "visible_on_front": event.visible_on_front,
        }
        return await self._record(
            event.actor, "update", "Order Status State Assignment", event.status,
            changes, context,
        )

    @boundary
    async def order_status_unassigned(
        self, event: OrderStatusUnassignedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self._section_enabled("orders"):
            return None
        changes = {"action": "unassign_state", "status": event.status, "state": event.state}
        return await self._record(
            event.actor, "update", "Order Status State Assignment", event.status,
            changes, context,
        )

    @boundary
    async def order_comment_added(
        self, event: OrderCommentAddedEvent, *, context: ContextResolver | None = None
    ) -> ActivityLog | None:
        if not self._section_enabled("orders"):
            return None
        changes = {
            "comment": event.comment,
            "status": event.status or "No status change",
            "visible_on_front": event.visible_on_front,
        }
        return await self._record(
            event.actor, "update", "Order Comment", event.order_id, changes, context
        )

    # ── Dispatch ──────────────────────────────────────────────────────────────

    async def handle(
        self,
        event: Any,
        *,
        dedup: DedupScope,
        context: ContextResolver | None = None,
    ) -> ActivityLog | None:
        """Route one inbound event to its handler."""
        context = context or StaticContext(store_id=event.store_id, website_id=event.website_id)
        if event.kind == "config_saved":
            return await self.config_saved(event, dedup=dedup, context=context)
        if event.kind == "invoice_created":
            return await self.invoice_created(event, dedup=dedup, context=context)
        handler = getattr(self, event.kind)
        return await handler(event, context=context)
