"""
Field formatting and redaction for changed values.
"""
from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl, unquote

from tracker.diff.normalizer import truthy

MASK = "******"
SERIALIZED_OPTIONS_FIELD = "serialized_options"

_OPTION_LABEL_RE = re.compile(r"^optionvisual\[value\]\[([^\]]*)\]\[0\]$")


def is_sensitive(field: Any) -> bool:
    return isinstance(field, str) and "password" in field.lower()


def option_labels(serialized: list[Any]) -> list[str]:
    """Admin labels (store 0) of every visual swatch option in the serialized form posts."""
    labels: list[str] = []
    for option in serialized:
        if not isinstance(option, str):
            continue
        found: dict[str, str] = {}
        for key, label in parse_qsl(unquote(option), keep_blank_values=True):
            match = _OPTION_LABEL_RE.match(key)
            if match:
                found[match.group(1)] = label
        labels.extend(label for label in found.values() if truthy(label))
    return labels


def format_value(field: Any, value: Any) -> Any:
    if is_sensitive(field):
        return MASK
    if field == SERIALIZED_OPTIONS_FIELD and isinstance(value, list):
        labels = option_labels(value)
        return ", ".join(labels) if labels else value
    return value


def redact_tree(data: Any) -> Any:
    """Apply ``format_value`` to every top-level field of a full-state payload."""
    if not isinstance(data, dict):
        return data
    return {field: format_value(field, value) for field, value in data.items()}


def display_changes(entity_type: str | None, changes: Any) -> Any:
    """Attribute records only show their visual option block when they carry one."""
    if entity_type and "Eav\\Attribute" in entity_type and isinstance(changes, dict):
        if "optionvisual" in changes:
            return {"optionvisual": changes["optionvisual"]}
    return changes
