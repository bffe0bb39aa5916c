"""Coordinate and orientation algebra for tile layouts.

Everything here is a pure function. The coordinate system is tile space with
+x pointing east and +y pointing south, so a clockwise quarter turn maps
``(x, y)`` to ``(-y, x)``. Orientations use the same frame:

    0 = facing -y (north), 1 = +x (east), 2 = +y (south), 3 = -x (west)

Positions and orientations are always transformed by the same helpers so a
direction attached to an entity turns exactly as the entity's position does.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from blueprint_tiler.src.common.constants import ORIENTATION_COUNT, SNAP_GRANULARITY
from blueprint_tiler.src.common.exceptions import OrientationError
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.model.entity import Entity, validate_orientation

Point = Tuple[float, float]
Tile = Tuple[int, int]

ORIENTATION_VECTORS = {
    0: (0, -1),
    1: (1, 0),
    2: (0, 1),
    3: (-1, 0),
}
_VECTOR_ORIENTATIONS = {vector: step for step, vector in ORIENTATION_VECTORS.items()}


def rotate(point: Point, steps: int) -> Point:
    """Rotate ``point`` clockwise about the origin by ``steps`` quarter turns."""
    x, y = point
    for _ in range(steps % ORIENTATION_COUNT):
        x, y = -y, x
    # Normalise -0.0 so rotated coordinates compare and format cleanly
    return (x + 0.0, y + 0.0)


def reflect(point: Point, flip_x: bool, flip_y: bool) -> Point:
    """Negate the selected axes of ``point``."""
    x, y = point
    if flip_x:
        x = -x
    if flip_y:
        y = -y
    return (x + 0.0, y + 0.0)


def transform_point(point: Point, flip_x: bool, flip_y: bool, steps: int) -> Point:
    """Reflect, then rotate ``point``; the order every caller uses."""
    return rotate(reflect(point, flip_x, flip_y), steps)


def orientation_to_vector(orientation: int) -> Tile:
    return ORIENTATION_VECTORS[validate_orientation(orientation)]


def vector_to_orientation(vector: Tuple[float, float]) -> int:
    """Map a cardinal unit vector back to its orientation step."""
    key = (int(round(vector[0])), int(round(vector[1])))
    try:
        return _VECTOR_ORIENTATIONS[key]
    except KeyError:
        raise OrientationError(f"Vector {vector!r} is not a cardinal unit vector") from None


def rotate_orientation(orientation: Optional[int], steps: int) -> Optional[int]:
    """Rotate an orientation clockwise by ``steps`` quarter turns."""
    if orientation is None:
        return None
    return vector_to_orientation(rotate(orientation_to_vector(orientation), steps))


def reflect_orientation(
    orientation: Optional[int], flip_x: bool, flip_y: bool
) -> Optional[int]:
    """Reflect an orientation across the selected axes."""
    if orientation is None:
        return None
    return vector_to_orientation(reflect(orientation_to_vector(orientation), flip_x, flip_y))


def transform_orientation(
    orientation: Optional[int], flip_x: bool, flip_y: bool, steps: int
) -> Optional[int]:
    return rotate_orientation(reflect_orientation(orientation, flip_x, flip_y), steps)


def snap_to_half(value: float, granularity: float = SNAP_GRANULARITY) -> float:
    """Snap ``value`` to the nearest multiple of ``granularity``.

    Halfway cases round up (towards +inf) so the rule does not depend on
    the sign of the coordinate parity the way round-half-even would.
    """
    return math.floor(value / granularity + 0.5) * granularity + 0.0


def snap_point(point: Point, granularity: float = SNAP_GRANULARITY) -> Point:
    return (snap_to_half(point[0], granularity), snap_to_half(point[1], granularity))


def tile_of(point: Point) -> Tile:
    """Integer tile containing the (snapped) point."""
    x, y = snap_point(point)
    return (math.floor(x), math.floor(y))


@dataclass(frozen=True)
class TileBounds:
    """Inclusive integer tile rectangle."""

    x_start: int
    y_start: int
    x_end: int
    y_end: int

    @property
    def width(self) -> int:
        return self.x_end - self.x_start + 1

    @property
    def height(self) -> int:
        return self.y_end - self.y_start + 1

    @property
    def origin(self) -> Tile:
        return (self.x_start, self.y_start)

    def contains(self, tile: Tile) -> bool:
        return self.x_start <= tile[0] <= self.x_end and self.y_start <= tile[1] <= self.y_end

    def tiles(self) -> Iterable[Tile]:
        for x in range(self.x_start, self.x_end + 1):
            for y in range(self.y_start, self.y_end + 1):
                yield (x, y)

    def distance_to(self, tile: Tile) -> int:
        """Chebyshev gap in tiles between ``tile`` and this rectangle (0 if inside)."""
        dx = max(self.x_start - tile[0], 0, tile[0] - self.x_end)
        dy = max(self.y_start - tile[1], 0, tile[1] - self.y_end)
        return max(dx, dy)


def oriented_size(
    entity_type: str, orientation: Optional[int], tables: EntityTables = DEFAULT_TABLES
) -> Tuple[int, int]:
    """Nominal size with width and height swapped for east/west orientations."""
    width, height = tables.size_of(entity_type)
    if orientation is not None and orientation % 2 == 1:
        return (height, width)
    return (width, height)


def quarter_turns(entity: Entity) -> int:
    """Quarter turns that decide an entity's footprint shape."""
    if entity.orientation is not None:
        return entity.orientation
    return entity.turns


def _span(center: float, size: float) -> Tuple[float, float]:
    return (center - size / 2.0, center + size / 2.0)


def footprint(entity: Entity, tables: EntityTables = DEFAULT_TABLES) -> TileBounds:
    """Integer tile range an entity occupies.

    Uses the exact continuous span ``[floor(c - s/2), ceil(c + s/2) - 1]`` per
    axis so a multi-tile entity and a 1x1 neighbour sit flush with no gap.
    """
    width, height = oriented_size(entity.type, quarter_turns(entity), tables)
    left, right = _span(entity.x, width)
    top, bottom = _span(entity.y, height)
    return TileBounds(
        x_start=math.floor(left),
        y_start=math.floor(top),
        x_end=math.ceil(right) - 1,
        y_end=math.ceil(bottom) - 1,
    )


def footprint_bounds(
    entities: Iterable[Entity],
    tables: EntityTables = DEFAULT_TABLES,
    steps: int = 0,
    flip_x: bool = False,
    flip_y: bool = False,
) -> Optional[TileBounds]:
    """Tile bounds of a whole collection after reflecting and rotating it.

    Entities without an orientation are sized by the turns they have already
    taken, then turned with the rest of the collection. Returns None for an
    empty collection.
    """
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for entity in entities:
        width, height = oriented_size(entity.type, quarter_turns(entity) + steps, tables)
        x, y = transform_point(entity.position, flip_x, flip_y, steps)
        left, right = _span(x, width)
        top, bottom = _span(y, height)
        min_x = min(min_x, left)
        min_y = min(min_y, top)
        max_x = max(max_x, right)
        max_y = max(max_y, bottom)

    if min_x == math.inf:
        return None

    return TileBounds(
        x_start=math.floor(min_x),
        y_start=math.floor(min_y),
        x_end=math.ceil(max_x) - 1,
        y_end=math.ceil(max_y) - 1,
    )


def transform_entity(
    entity: Entity,
    flip_x: bool,
    flip_y: bool,
    steps: int,
    offset: Point = (0.0, 0.0),
    granularity: float = SNAP_GRANULARITY,
) -> Entity:
    """Reflect, rotate, translate and snap one entity."""
    x, y = transform_point(entity.position, flip_x, flip_y, steps)
    position = snap_point((x + offset[0], y + offset[1]), granularity)
    orientation = transform_orientation(entity.orientation, flip_x, flip_y, steps)
    turns = (entity.turns + steps) % ORIENTATION_COUNT
    return replace(entity.moved(position, orientation), turns=turns)
