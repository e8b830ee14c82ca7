"""
Recursive data tree used by the diff engine and snapshot store.
Arbitrary entity data is converted into plain JSON-compatible values first.
"""
from __future__ import annotations

import dataclasses
import datetime as dt
import enum
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Union

from pydantic import BaseModel

Value = Union[None, bool, int, float, str, list["Value"], dict[str, "Value"]]
ChangeSet = dict[str, Value]

SCALAR_TYPES = (bool, int, float, str)


def is_container(value: Any) -> bool:
    return isinstance(value, (list, dict))


def is_empty_container(value: Any) -> bool:
    return is_container(value) and len(value) == 0


def entries(container: list[Value] | dict[str, Value]) -> list[tuple[str, Value]]:
    """Key/value pairs of a container; list positions are keyed by their index."""
    if isinstance(container, dict):
        return [(str(key), value) for key, value in container.items()]
    return [(str(index), value) for index, value in enumerate(container)]


def lookup(container: list[Value] | dict[str, Value], key: str) -> Value:
    """Value at ``key`` or None when the key is absent."""
    if isinstance(container, dict):
        return container.get(key)
    try:
        index = int(key)
    except ValueError:
        return None
    if 0 <= index < len(container):
        return container[index]
    return None


def has_key(container: list[Value] | dict[str, Value], key: str) -> bool:
    """True when ``key`` is present with a non-null value."""
    return lookup(container, key) is not None


def to_tree(data: Any) -> Value:
    """
    Convert entity data into a Value tree.

    Mappings keep their key order with keys coerced to strings. Pydantic models
    and dataclasses are dumped. Sequences and sets become lists. Decimals keep
    their exact text; dates, UUIDs and enums become their string/value form.
    Any other object carries no comparable state and becomes an empty map.
    """
    if data is None or isinstance(data, SCALAR_TYPES):
        return data
    if isinstance(data, Decimal):
        return str(data)
    if isinstance(data, (dt.datetime, dt.date, dt.time)):
        return data.isoformat()
    if isinstance(data, uuid.UUID):
        return str(data)
    if isinstance(data, enum.Enum):
        return to_tree(data.value)
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    if isinstance(data, BaseModel):
        return to_tree(data.model_dump())
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return to_tree(dataclasses.asdict(data))
    if isinstance(data, Mapping):
        return {str(key): to_tree(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_tree(item) for item in data]
    if isinstance(data, (set, frozenset)):
        return [to_tree(item) for item in sorted(data, key=repr)]
    return {}


def strip_keys(data: Value, ignored: frozenset[str] | set[str]) -> Value:
    """Recursively drop ``ignored`` keys from every map in the tree."""
    if isinstance(data, dict):
        return {
            key: strip_keys(value, ignored)
            for key, value in data.items()
            if key not in ignored
        }
    if isinstance(data, list):
        return [strip_keys(item, ignored) for item in data]
    return data
