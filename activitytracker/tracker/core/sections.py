"""
Entity type to logical section mapping.
Loaded from a JSON document so new entity types can be mapped without a code change.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionMap:
    """
    Resolves entity types to the admin sections that can be excluded from tracking.

    Attributes:
        sections: entity type -> section name.
        ignored_entity_types: internal/system types that are never tracked.
        ignored_entity_patterns: substrings marking a whole family of ignored types.
        strip_suffixes: proxy suffixes removed before any lookup.
    """

    sections: dict[str, str] = field(default_factory=dict)
    ignored_entity_types: frozenset[str] = frozenset()
    ignored_entity_patterns: tuple[str, ...] = ()
    strip_suffixes: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SectionMap":
        return cls(
            sections=dict(data.get("sections") or {}),
            ignored_entity_types=frozenset(data.get("ignored_entity_types") or ()),
            ignored_entity_patterns=tuple(data.get("ignored_entity_patterns") or ()),
            strip_suffixes=tuple(data.get("strip_suffixes") or ()),
        )

    @classmethod
    def load(cls, path: str | Path) -> "SectionMap":
        """Read a section map file. Raises on a missing or malformed file."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Section map {path} must contain a JSON object")
        section_map = cls.from_dict(data)
        logger.debug(
            "Loaded section map from %s: %d entity types, %d ignored",
            path,
            len(section_map.sections),
            len(section_map.ignored_entity_types),
        )
        return section_map

    def base_type(self, entity_type: str) -> str:
        for suffix in self.strip_suffixes:
            if suffix and entity_type.endswith(suffix):
                return entity_type[: -len(suffix)]
        return entity_type

    def section_for(self, entity_type: str) -> str | None:
        return self.sections.get(self.base_type(entity_type))

    def is_ignored(self, entity_type: str) -> bool:
        base = self.base_type(entity_type)
        if entity_type in self.ignored_entity_types or base in self.ignored_entity_types:
            return True
        return any(pattern in entity_type for pattern in self.ignored_entity_patterns)
