"""
Snapshot diff engine.
Compares the last recorded snapshot of an entity with its current data and
produces a sparse change-set: added and modified fields carry their new value,
removed fields carry None, nested maps carry a nested change-set.
"""
from __future__ import annotations

from collections.abc import Iterable

from tracker.diff.formatter import format_value
from tracker.diff.normalizer import normalize, truthy, values_equal
from tracker.diff.policies import NOT_APPLICABLE, FieldPolicyTable, default_policies
from tracker.diff.tree import ChangeSet, Value, entries, has_key, is_container, lookup

DEFAULT_SKIP_FIELDS: frozenset[str] = frozenset(
    {
        "updated_at",
        "created_at",
        "_cache_instance_product_set_attributes",
        "_cache_instance_used_product_attributes",
        "quantity_and_stock_status",
        "stock_data",
        "current_product_id",
        "affect_product_custom_options",
        "current_store_id",
        "product_has_weight",
        "use_config_gift_message_available",
        "website_ids",
        "url_key_create_redirect",
        "can_save_custom_options",
        "save_rewrites_history",
        "is_custom_option_changed",
        "custom_design_from_is_formated",
        "special_from_date_is_formated",
        "custom_design_to_is_formated",
        "special_to_date_is_formated",
        "news_from_date_is_formated",
        "news_to_date_is_formated",
        "force_reindex_eav_required",
        "extension_attributes",
        "up_sell_products",
        "cross_sell_products",
        "related_products",
        "is_changed_categories",
        "affected_category_ids",
    }
)
DEFAULT_SKIP_PREFIXES: tuple[str, ...] = ("use_config_",)


class DiffEngine:
    """
    Computes change-sets between two data trees.

    The skip-list only applies to top-level fields. Identifier-list fields and
    child overrides come from the policy table.
    """

    def __init__(
        self,
        *,
        skip_fields: Iterable[str] = DEFAULT_SKIP_FIELDS,
        skip_prefixes: Iterable[str] = DEFAULT_SKIP_PREFIXES,
        policies: FieldPolicyTable | None = None,
    ) -> None:
        self.skip_fields = frozenset(skip_fields)
        self.skip_prefixes = tuple(skip_prefixes)
        self.policies = policies or default_policies()

    def is_skipped(self, field: str) -> bool:
        return field in self.skip_fields or field.startswith(self.skip_prefixes)

    def diff(self, old: dict[str, Value], new: dict[str, Value]) -> ChangeSet:
        changes: ChangeSet = {}

        for field, value in new.items():
            if self.is_skipped(field):
                continue

            original = old.get(field)
            # Blank on both sides: never report null -> null noise
            if not truthy(original) and not truthy(value):
                continue

            if original is None:
                if not values_equal(None, normalize(value)):
                    changes[field] = format_value(field, value)
            elif is_container(original) and is_container(value):
                if self.policies.replaces_in_full(field):
                    if not values_equal(original, value):
                        changes[field] = value
                else:
                    nested = self.compare_arrays(original, value, field)
                    if nested:
                        changes[field] = nested
            elif not values_equal(normalize(original), normalize(value)):
                changes[field] = format_value(field, value)

        for field, value in old.items():
            if self.is_skipped(field) or field in new:
                continue
            if not values_equal(normalize(value), None):
                changes[field] = None

        return changes

    def compare_arrays(
        self,
        original: list[Value] | dict[str, Value],
        new: list[Value] | dict[str, Value],
        parent: str | None = None,
    ) -> ChangeSet:
        """One level of a nested diff, recursing into containers present on both sides."""
        changes: ChangeSet = {}

        for key, value in entries(new):
            original_value = lookup(original, key)
            normalized_original = normalize(original_value)
            normalized_new = normalize(value)

            if original_value is None:
                if not values_equal(None, normalized_new):
                    changes[key] = value
                continue

            if not values_equal(normalized_original, normalized_new):
                override = self.policies.override_child(parent, original_value, value)
                if override is not NOT_APPLICABLE:
                    changes[key] = override
                    continue

            if is_container(normalized_original) and is_container(normalized_new):
                nested = self.compare_arrays(
                    original_value if is_container(original_value) else [],
                    value if is_container(value) else [],
                    key,
                )
                if nested:
                    changes[key] = nested
            elif not values_equal(normalized_original, normalized_new):
                changes[key] = format_value(key, value)

        for key, value in entries(original):
            if not has_key(new, key) and not values_equal(normalize(value), None):
                changes[key] = None

        return changes


def diff(old: dict[str, Value], new: dict[str, Value]) -> ChangeSet:
    """Diff with the default skip-list and policies."""
    return _default_engine.diff(old, new)


_default_engine = DiffEngine()
