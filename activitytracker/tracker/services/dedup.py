"""
Duplicate suppression for hooks that fire more than once per logical action.
"""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class DedupScope:
    """
    Suppression state seen by one request.

    Latches belong to this scope alone and disappear with it. Keys passed to
    ``first_time`` go to the shared process-wide memo.
    """

    def __init__(self, seen: set[str]) -> None:
        self._seen = seen
        self._latches: set[str] = set()

    def first_time(self, key: str) -> bool:
        """True the first time ``key`` is offered in this process, False for every repeat."""
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def acquire_latch(self, name: str) -> bool:
        """Set the latch ``name``; False when this request already set it."""
        if name in self._latches:
            return False
        self._latches.add(name)
        return True


class DedupContext:
    """Process-lifetime memo from which each request opens its own scope."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    @contextmanager
    def request(self) -> Iterator[DedupScope]:
        yield DedupScope(self._seen)
