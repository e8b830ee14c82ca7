"""
Value canonicalization and the equality predicate used by the diff engine.
Equivalent representations coming from different storage layers compare equal.
"""
from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any

from tracker.diff.tree import is_container, is_empty_container

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_FLAG_TOKENS = {"0": 0, "1": 1}


def _is_empty_object(value: Any) -> bool:
    if isinstance(value, Mapping):
        return len(value) == 0
    if isinstance(value, (str, bytes, int, float, bool, list, tuple)) or value is None:
        return False
    try:
        return len(vars(value)) == 0
    except TypeError:
        return False


def normalize(value: Any) -> Any:
    """
    Canonicalize one value for comparison.

    Empty containers and field-less objects become ``[]``. Strings are trimmed,
    and the flag tokens ``"0"``/``"1"`` become integers. Trimming happens before
    the token check so that ``normalize`` stays idempotent for padded tokens.
    """
    if is_empty_container(value) or _is_empty_object(value):
        return []
    if isinstance(value, str):
        trimmed = value.strip()
        return _FLAG_TOKENS.get(trimmed, trimmed)
    return value


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        return _NUMERIC_RE.match(value) is not None
    return False


def truthy(value: Any) -> bool:
    """Loose truthiness where the string ``"0"`` counts as false."""
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def canonical_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _numbers_equal(a: Any, b: Any) -> bool:
    if isinstance(a, int) and isinstance(b, int):
        return a == b
    try:
        return float(a) == float(b)
    except OverflowError:
        # Integers beyond float range only match themselves
        return type(a) is type(b) and a == b


def values_equal(a: Any, b: Any) -> bool:
    """
    Loose equality over normalized values.

    Null and empty string are interchangeable, as are null and an empty
    container. Containers match on length and order-sensitive canonical JSON.
    Numerics compare as floats unless both are integers, booleans compare by
    truthiness, and anything else needs the same type and value.
    """
    if _is_blank(a) and _is_blank(b):
        return True
    if a is None and is_empty_container(b):
        return True
    if is_empty_container(a) and b is None:
        return True
    if is_container(a) and is_container(b):
        if len(a) != len(b):
            return False
        return canonical_json(a) == canonical_json(b)
    if is_numeric(a) and is_numeric(b):
        return _numbers_equal(a, b)
    if isinstance(a, bool) or isinstance(b, bool):
        return truthy(a) == truthy(b)
    return type(a) is type(b) and a == b
