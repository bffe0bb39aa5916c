from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from blueprint_tiler.src.common.constants import DEFAULT_CONFIG, TilerConfig
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.geometry.kernel import (
    Tile,
    TileBounds,
    footprint,
    tile_of,
    vector_to_orientation,
)
from blueprint_tiler.src.model.entity import Entity

"""Orientation repair for transfer entities that lost their direction."""


@dataclass(frozen=True)
class UnresolvedTransfer:
    """A transfer entity left without an orientation."""

    index: int
    entity: Entity
    reason: str


@dataclass
class RepairResult:
    """Entities after repair plus what was changed and what was not."""

    entities: List[Entity]
    repaired: List[int] = field(default_factory=list)
    unresolved: List[UnresolvedTransfer] = field(default_factory=list)


def _facing(tile: Tile, bounds: TileBounds) -> Optional[Tuple[int, int]]:
    """Cardinal unit vector from ``tile`` towards ``bounds``.

    Returns None when the rectangle is only diagonally adjacent, since a
    transfer entity cannot drop around a corner.
    """
    x, y = tile
    within_x = bounds.x_start <= x <= bounds.x_end
    within_y = bounds.y_start <= y <= bounds.y_end
    if within_x and within_y:
        return None
    if within_x:
        return (0, 1) if y < bounds.y_start else (0, -1)
    if within_y:
        return (1, 0) if x < bounds.x_start else (-1, 0)
    return None


class DirectionRepairer:
    """Point orientation-less transfer entities at an adjacent producer."""

    def __init__(
        self,
        tables: EntityTables = DEFAULT_TABLES,
        diagnostics: Optional[LayoutDiagnostics] = None,
        config: TilerConfig = DEFAULT_CONFIG,
    ) -> None:
        self.tables = tables
        self.diagnostics = diagnostics or LayoutDiagnostics()
        self.config = config

    def repair(self, entities: Sequence[Entity]) -> RepairResult:
        """Fill in missing transfer orientations.

        Transfer entities that already have an orientation are left alone.
        When several producers qualify, the one with the lexicographically
        smallest ``(x, y, type)`` wins so repeated runs agree.
        """
        producers = sorted(
            (e for e in entities if self.tables.is_producer(e.type)),
            key=lambda e: (e.x, e.y, e.type),
        )
        producer_bounds = [(producer, footprint(producer, self.tables)) for producer in producers]

        result = RepairResult(entities=list(entities))
        for index, entity in enumerate(entities):
            if entity.orientation is not None or not self.tables.is_transfer(entity.type):
                continue

            orientation = self._orientation_towards_producer(entity, producer_bounds)
            if orientation is None:
                reason = "no adjacent producer"
                result.unresolved.append(UnresolvedTransfer(index=index, entity=entity, reason=reason))
                self.diagnostics.warning(
                    f"Could not infer orientation for '{entity.type}' at "
                    f"({entity.x}, {entity.y}): {reason}",
                    stage="connectors",
                    entity=entity,
                )
                continue

            result.entities[index] = entity.with_orientation(orientation)
            result.repaired.append(index)

        if result.repaired:
            self.diagnostics.info(
                f"Inferred orientation for {len(result.repaired)} transfer entities",
                stage="connectors",
            )
        return result

    def _orientation_towards_producer(
        self, entity: Entity, producer_bounds: List[Tuple[Entity, TileBounds]]
    ) -> Optional[int]:
        tile = tile_of(entity.position)
        for _producer, bounds in producer_bounds:
            gap = bounds.distance_to(tile)
            if gap == 0 or gap > self.config.transfer_reach:
                continue
            vector = _facing(tile, bounds)
            if vector is not None:
                return vector_to_orientation(vector)
        return None


def repair_directions(
    entities: Sequence[Entity],
    tables: EntityTables = DEFAULT_TABLES,
    diagnostics: Optional[LayoutDiagnostics] = None,
    config: TilerConfig = DEFAULT_CONFIG,
) -> RepairResult:
    """Convenience wrapper around :class:`DirectionRepairer`."""
    return DirectionRepairer(tables, diagnostics, config).repair(entities)
