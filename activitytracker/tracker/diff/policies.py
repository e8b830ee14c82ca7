"""
Per-field override policies for the diff engine.
Special cases are registered here instead of being hard-coded in the recursion.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from tracker.diff.normalizer import truthy
from tracker.diff.tree import Value

NOT_APPLICABLE: Any = object()

# (old child, new child) -> replacement change or NOT_APPLICABLE
ChildOverride = Callable[[Value, Value], Any]

IDENTIFIER_LIST_FIELDS = ("category_ids", "state_codes")


def merge_removed_entry(old: Value, new: Value) -> Any:
    """
    A child flagged ``removed`` is reported together with its previous data,
    so the trail still shows which entry went away.
    """
    if isinstance(new, dict) and truthy(new.get("removed")):
        previous = old if isinstance(old, dict) else {}
        return {**previous, **new}
    return NOT_APPLICABLE


@dataclass
class FieldPolicyTable:
    replace_in_full: set[str] = field(default_factory=set)
    child_overrides: dict[str, ChildOverride] = field(default_factory=dict)

    def register_replace(self, field_name: str) -> None:
        self.replace_in_full.add(field_name)

    def register_child_override(self, parent: str, override: ChildOverride) -> None:
        self.child_overrides[parent] = override

    def replaces_in_full(self, field_name: str) -> bool:
        return field_name in self.replace_in_full

    def override_child(self, parent: str | None, old: Value, new: Value) -> Any:
        override = self.child_overrides.get(parent) if parent is not None else None
        if override is None:
            return NOT_APPLICABLE
        return override(old, new)


def default_policies() -> FieldPolicyTable:
    table = FieldPolicyTable()
    for field_name in IDENTIFIER_LIST_FIELDS:
        table.register_replace(field_name)
    table.register_child_override("images", merge_removed_entry)
    return table
