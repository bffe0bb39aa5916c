from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from blueprint_tiler.src.common.constants import DEFAULT_CONFIG, ORIENTATION_COUNT, TilerConfig
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.exceptions import OrientationError

"""Entity records exchanged between the layout stages and the blueprint boundary."""

# Record keys the core interprets; everything else is passthrough metadata
_CORE_KEYS = ("name", "position", "direction")


def validate_orientation(orientation: Any) -> Optional[int]:
    """Return ``orientation`` as an int in 0..3, or None when absent.

    Raises:
        OrientationError: for anything that is not an integer step in 0..3
    """
    if orientation is None:
        return None
    if isinstance(orientation, bool) or not isinstance(orientation, int):
        raise OrientationError(f"Orientation must be an integer 0..3, got {orientation!r}")
    if not 0 <= orientation < ORIENTATION_COUNT:
        raise OrientationError(f"Orientation {orientation} is outside 0..3")
    return orientation


@dataclass(frozen=True)
class Entity:
    """One physical tile object.

    Identity is ``(type, position, orientation)``; ``extras`` carries
    passthrough metadata the layout stages never interpret. ``turns`` counts
    the quarter turns applied to an unoriented entity so its footprint
    rotates with the layout.
    """

    type: str
    position: Tuple[float, float]
    orientation: Optional[int] = None
    extras: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    turns: int = field(default=0, compare=False, hash=False)

    def __post_init__(self) -> None:
        validate_orientation(self.orientation)

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    def moved(
        self, position: Tuple[float, float], orientation: Optional[int]
    ) -> "Entity":
        """Copy with a new position and orientation, extras preserved."""
        return replace(self, position=position, orientation=orientation)

    def with_orientation(self, orientation: Optional[int]) -> "Entity":
        return replace(self, orientation=orientation)

    def without_extras(self, *keys: str) -> "Entity":
        extras = {k: v for k, v in self.extras.items() if k not in keys}
        return replace(self, extras=extras)


def _coerce_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def entity_from_record(
    record: Mapping[str, Any],
    diagnostics: LayoutDiagnostics,
    config: TilerConfig = DEFAULT_CONFIG,
) -> Optional[Entity]:
    """Convert one blueprint entity record into an :class:`Entity`.

    Malformed records (no name, missing or non-numeric position) are skipped
    with a warning. A direction that does not map onto the four cardinal
    orientations is fatal.

    Returns:
        The parsed entity, or None if the record was skipped
    """
    if not isinstance(record, Mapping):
        diagnostics.warning(f"Skipping non-object entity record: {record!r}", stage="parse", entity=record)
        return None

    name = record.get("name")
    if not isinstance(name, str) or not name:
        diagnostics.warning(f"Skipping entity without a type: {record!r}", stage="parse", entity=record)
        return None

    position = record.get("position")
    x = y = None
    if isinstance(position, Mapping):
        x = _coerce_coordinate(position.get("x"))
        y = _coerce_coordinate(position.get("y"))
    if x is None or y is None:
        diagnostics.warning(
            f"Skipping entity with missing or non-numeric position: {record!r}",
            stage="parse",
            entity=record,
        )
        return None

    orientation = direction_to_orientation(record.get("direction"), config, record)
    extras: Dict[str, Any] = {k: v for k, v in record.items() if k not in _CORE_KEYS}
    return Entity(type=name, position=(x, y), orientation=orientation, extras=extras)


def direction_to_orientation(
    direction: Any, config: TilerConfig = DEFAULT_CONFIG, record: Any = None
) -> Optional[int]:
    """Map a blueprint ``direction`` value onto an orientation step."""
    if direction is None:
        return None
    if isinstance(direction, bool) or not isinstance(direction, int):
        raise OrientationError(f"Direction must be an integer, got {direction!r}", record)
    if direction % config.direction_scale != 0:
        raise OrientationError(
            f"Direction {direction} is not a cardinal direction "
            f"(expected a multiple of {config.direction_scale})",
            record,
        )
    orientation = direction // config.direction_scale
    if not 0 <= orientation < ORIENTATION_COUNT:
        raise OrientationError(f"Direction {direction} is outside the cardinal range", record)
    return orientation


def entity_to_record(entity: Entity, config: TilerConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """Convert an :class:`Entity` back into a blueprint entity record."""
    record: Dict[str, Any] = {
        "name": entity.type,
        "position": {"x": entity.x, "y": entity.y},
    }
    if entity.orientation is not None:
        record["direction"] = entity.orientation * config.direction_scale
    for key, value in entity.extras.items():
        record.setdefault(key, value)
    return record


def parse_entities(
    records: Iterable[Any],
    diagnostics: LayoutDiagnostics,
    config: TilerConfig = DEFAULT_CONFIG,
) -> List[Entity]:
    """Parse a sequence of raw records, skipping malformed ones."""
    entities: List[Entity] = []
    for record in records:
        entity = entity_from_record(record, diagnostics, config)
        if entity is not None:
            entities.append(entity)
    return entities
