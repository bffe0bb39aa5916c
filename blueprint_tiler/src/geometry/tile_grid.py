"""Tile occupancy tracking for composed layouts."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.model.entity import Entity
from .kernel import Tile, footprint


@dataclass(frozen=True)
class TileCollision:
    """Two distinct entities whose footprints claim the same tile."""

    tile: Tile
    owner: Entity
    other: Entity


class TileGrid:
    """Tracks which entity owns each tile.

    Used after composition for:
    1. Detecting footprints that overlap once units are tiled together
    2. Resolving the owner of a contested tile by type priority
    """

    def __init__(self, tables: EntityTables = DEFAULT_TABLES):
        self.tables = tables
        self._owners: Dict[Tile, Entity] = {}
        self.collisions: List[TileCollision] = []

    def owner_of(self, tile: Tile) -> Optional[Entity]:
        """Entity holding ``tile`` after priority resolution, if any."""
        return self._owners.get(tile)

    def place(self, entity: Entity) -> List[TileCollision]:
        """Stamp ``entity``'s footprint into the grid.

        A tile already owned by a different entity is recorded as a
        collision; the higher-priority entity keeps the tile and ties keep
        the existing owner.

        Returns:
            Collisions produced by this placement
        """
        new_collisions: List[TileCollision] = []
        priority = self.tables.priority_of(entity.type)
        for tile in footprint(entity, self.tables).tiles():
            current = self._owners.get(tile)
            if current is None:
                self._owners[tile] = entity
                continue
            if current == entity:
                continue
            new_collisions.append(TileCollision(tile=tile, owner=current, other=entity))
            if priority > self.tables.priority_of(current.type):
                self._owners[tile] = entity
        self.collisions.extend(new_collisions)
        return new_collisions

    def rebuild_from_entities(self, entities: Iterable[Entity]) -> None:
        """Clear the grid and stamp every entity in order."""
        self._owners.clear()
        self.collisions = []
        for entity in entities:
            self.place(entity)
