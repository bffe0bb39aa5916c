"""Immutable per-type lookup tables (size, priority, speed, roles)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .diagnostics import LayoutDiagnostics
from .entity_data import EntityDataHelper
from .exceptions import BlueprintFormatError


DEFAULT_SIZES: Dict[str, Tuple[int, int]] = {
    "boiler": (3, 2),
    "steam-engine": (3, 5),
    "stone-furnace": (2, 2),
    "steel-furnace": (2, 2),
    "electric-furnace": (3, 3),
    "assembling-machine-1": (3, 3),
    "assembling-machine-2": (3, 3),
    "assembling-machine-3": (3, 3),
    "small-electric-pole": (1, 1),
    "medium-electric-pole": (1, 1),
    "big-electric-pole": (2, 2),
    "inserter": (1, 1),
    "pipe": (1, 1),
    "transport-belt": (1, 1),
}

# Higher number wins a contested tile
DEFAULT_PRIORITIES: Dict[str, int] = {
    "steam-engine": 5,
    "boiler": 4,
    "assembling-machine-1": 4,
    "assembling-machine-2": 4,
    "assembling-machine-3": 4,
    "small-electric-pole": 3,
    "inserter": 2,
    "pipe": 1,
}

# Items per second per lane
DEFAULT_SPEEDS: Dict[str, float] = {
    "transport-belt": 15.0,
    "fast-transport-belt": 30.0,
    "express-transport-belt": 45.0,
    "turbo-transport-belt": 60.0,
}

DEFAULT_TRANSFER_TYPES = frozenset(
    {
        "burner-inserter",
        "inserter",
        "long-handed-inserter",
        "fast-inserter",
        "bulk-inserter",
        "stack-inserter",
    }
)

DEFAULT_PRODUCER_TYPES = frozenset(
    {
        "stone-furnace",
        "steel-furnace",
        "electric-furnace",
        "assembling-machine-1",
        "assembling-machine-2",
        "assembling-machine-3",
    }
)

# Any type whose name contains one of these also counts as a producer
DEFAULT_PRODUCER_MARKERS = ("furnace", "assembling-machine")

DEFAULT_DISTRIBUTION_TYPES = frozenset(
    {"small-electric-pole", "medium-electric-pole", "big-electric-pole"}
)

_TABLE_KEYS = {
    "sizes",
    "priorities",
    "speeds",
    "entity_speeds",
    "transfer_types",
    "producer_types",
    "distribution_types",
}


def _freeze(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


def _table(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    table = data.get(key)
    if table is None:
        return {}
    if not isinstance(table, Mapping):
        raise BlueprintFormatError(f"Table '{key}' must be an object, got {table!r}")
    return table


def _convert(key: str, name: str, value: Any, convert: Callable[[Any], Any]) -> Any:
    """Apply ``convert`` to one table entry, naming the entry on failure."""
    if isinstance(value, bool):
        raise BlueprintFormatError(f"Invalid '{key}' entry for '{name}': {value!r}")
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise BlueprintFormatError(f"Invalid '{key}' entry for '{name}': {value!r}") from e


def _size(value: Any) -> Tuple[int, int]:
    width, height = value
    if isinstance(width, bool) or isinstance(height, bool):
        raise TypeError("size components must be numbers")
    return (int(width), int(height))


def _role_set(key: str, values: Any) -> FrozenSet[str]:
    if isinstance(values, (str, Mapping)) or not isinstance(values, Iterable):
        raise BlueprintFormatError(f"Role list '{key}' must be a list of names, got {values!r}")
    names = list(values)
    for name in names:
        if not isinstance(name, str):
            raise BlueprintFormatError(f"Role list '{key}' contains a non-name entry: {name!r}")
    return frozenset(names)



@dataclass(frozen=True)
class EntityTables:
    """Per-type configuration passed explicitly into every component.

    Unknown types fall back to a 1x1 footprint, priority 0 and no speed
    (which excludes them from flow analysis).
    """

    sizes: Mapping[str, Tuple[int, int]] = field(
        default_factory=lambda: _freeze(DEFAULT_SIZES)
    )
    priorities: Mapping[str, int] = field(
        default_factory=lambda: _freeze(DEFAULT_PRIORITIES)
    )
    speeds: Mapping[str, float] = field(default_factory=lambda: _freeze(DEFAULT_SPEEDS))
    transfer_types: FrozenSet[str] = DEFAULT_TRANSFER_TYPES
    producer_types: FrozenSet[str] = DEFAULT_PRODUCER_TYPES
    producer_markers: Tuple[str, ...] = DEFAULT_PRODUCER_MARKERS
    distribution_types: FrozenSet[str] = DEFAULT_DISTRIBUTION_TYPES

    def size_of(self, entity_type: str) -> Tuple[int, int]:
        return tuple(self.sizes.get(entity_type, (1, 1)))  # type: ignore[return-value]

    def priority_of(self, entity_type: str) -> int:
        return self.priorities.get(entity_type, 0)

    def speed_of(self, entity_type: str) -> Optional[float]:
        return self.speeds.get(entity_type)

    def is_transport(self, entity_type: str) -> bool:
        return entity_type in self.speeds

    def is_transfer(self, entity_type: str) -> bool:
        return entity_type in self.transfer_types

    def is_producer(self, entity_type: str) -> bool:
        if entity_type in self.producer_types:
            return True
        return any(marker in entity_type for marker in self.producer_markers)

    def is_distribution_node(self, entity_type: str) -> bool:
        return entity_type in self.distribution_types

    def with_draftsman_sizes(self, entity_types: Iterable[str]) -> "EntityTables":
        """Return a copy whose size table also covers ``entity_types``.

        Types already in the table keep their configured size; the rest are
        looked up in draftsman's prototype data. Types draftsman does not
        know stay absent and fall back to 1x1.
        """
        sizes = dict(self.sizes)
        for entity_type in sorted(set(entity_types)):
            if entity_type in sizes:
                continue
            footprint = EntityDataHelper.get_footprint(entity_type)
            if footprint is not None:
                sizes[entity_type] = footprint
        return replace(self, sizes=_freeze(sizes))

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        diagnostics: Optional[LayoutDiagnostics] = None,
        base: Optional["EntityTables"] = None,
    ) -> "EntityTables":
        """Build tables from a JSON-like mapping, layered over ``base``.

        Table maps are merged into the base tables; role lists replace the
        base sets.
        """
        base = base or DEFAULT_TABLES
        for key in sorted(set(data) - _TABLE_KEYS):
            if diagnostics is not None:
                diagnostics.warning(f"Ignoring unknown table key '{key}'", stage="config")

        sizes = dict(base.sizes)
        for name, size in _table(data, "sizes").items():
            sizes[name] = _convert("sizes", name, size, _size)

        priorities = dict(base.priorities)
        for name, value in _table(data, "priorities").items():
            priorities[name] = _convert("priorities", name, value, int)

        speeds = dict(base.speeds)
        speed_key = "speeds" if data.get("speeds") else "entity_speeds"
        for name, value in _table(data, speed_key).items():
            speeds[name] = _convert(speed_key, name, value, float)

        def _role(key: str, current: FrozenSet[str]) -> FrozenSet[str]:
            values = data.get(key)
            return _role_set(key, values) if values is not None else current

        return cls(
            sizes=_freeze(sizes),
            priorities=_freeze(priorities),
            speeds=_freeze(speeds),
            transfer_types=_role("transfer_types", base.transfer_types),
            producer_types=_role("producer_types", base.producer_types),
            producer_markers=base.producer_markers,
            distribution_types=_role("distribution_types", base.distribution_types),
        )

    @classmethod
    def from_json_file(
        cls, path: Path, diagnostics: Optional[LayoutDiagnostics] = None
    ) -> "EntityTables":
        """Load table overrides from a JSON file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BlueprintFormatError(f"Failed to read tables file '{path}': {e}") from e
        if not isinstance(data, dict):
            raise BlueprintFormatError(f"Tables file '{path}' must contain a JSON object")
        return cls.from_mapping(data, diagnostics=diagnostics)


DEFAULT_TABLES = EntityTables()
