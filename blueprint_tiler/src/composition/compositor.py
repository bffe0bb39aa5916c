"""Tile Compositor: replicate a unit layout across a grid.

The compositor takes one unit (an entity collection) and tiles it into
``rows x cols`` cells. Each cell gets the unit reflected, rotated and
translated, cells may share an edge so a belt or pole on one unit's trailing
edge lands on the next unit's leading edge, and coinciding tiles collapse
during deduplication. The composed collection is then direction-repaired,
renumbered and rewired.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

from blueprint_tiler.src.common.constants import DEFAULT_CONFIG, ORIENTATION_COUNT, TilerConfig
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.exceptions import EmptyUnitError, OrientationError
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.connectors.direction_repair import DirectionRepairer, UnresolvedTransfer
from blueprint_tiler.src.connectors.wire_builder import WireBuilder, WireEdge
from blueprint_tiler.src.geometry.kernel import TileBounds, footprint_bounds, transform_entity
from blueprint_tiler.src.geometry.tile_grid import TileCollision, TileGrid
from blueprint_tiler.src.model.entity import Entity

# (rotate steps, flip_x, flip_y)
CellTransform = Tuple[int, bool, bool]
DedupKey = Tuple[str, float, float, object]


@dataclass(frozen=True)
class CompositionParams:
    """Replication parameters for one composition call."""

    rows: int
    cols: int
    spacing_x: float = 1
    spacing_y: float = 1
    rotate: int = 0
    flip_x: bool = False
    flip_y: bool = False
    share_x: bool = False
    share_y: bool = False
    per_row_flip: FrozenSet[int] = frozenset()
    per_row_rotate: Mapping[int, int] = field(default_factory=dict)
    flip_bottom_half: bool = False
    normalize: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.rotate, bool) or not isinstance(self.rotate, int):
            raise OrientationError(f"rotate must be an integer 0..3, got {self.rotate!r}")
        if not 0 <= self.rotate < ORIENTATION_COUNT:
            raise OrientationError(f"rotate {self.rotate} is outside 0..3")

    @property
    def base_transform(self) -> CellTransform:
        return (self.rotate, self.flip_x, self.flip_y)

    def cell_transform(self, row: int) -> CellTransform:
        """Effective transform for every cell in ``row``.

        Starts from the base transform; a per-row flip toggles the vertical
        flip, a per-row rotation adds quarter turns, and the legacy
        bottom-half flag toggles the vertical flip of the lower half.
        """
        steps, flip_x, flip_y = self.base_transform
        if row in self.per_row_flip:
            flip_y = not flip_y
        if row in self.per_row_rotate:
            steps = (steps + self.per_row_rotate[row]) % ORIENTATION_COUNT
        if self.flip_bottom_half and row >= self.rows // 2:
            flip_y = not flip_y
        return (steps, flip_x, flip_y)


@dataclass
class CompositionResult:
    """Composed layout plus everything a caller needs to judge it."""

    entities: List[Entity] = field(default_factory=list)
    wires: List[WireEdge] = field(default_factory=list)
    unresolved: List[UnresolvedTransfer] = field(default_factory=list)
    collisions: List[TileCollision] = field(default_factory=list)
    step: Tuple[int, int] = (0, 0)
    unit_bounds: Optional[TileBounds] = None
    duplicates_dropped: int = 0

    def wire_tuples(self, port: int = DEFAULT_CONFIG.wire_port) -> List[List[int]]:
        return [edge.to_tuple(port) for edge in self.wires]


def dedup_key(entity: Entity, precision: int = DEFAULT_CONFIG.dedup_precision) -> DedupKey:
    """Canonical identity of a composed entity."""
    orientation = entity.orientation if entity.orientation is not None else "none"
    return (
        entity.type,
        round(entity.x, precision) + 0.0,
        round(entity.y, precision) + 0.0,
        orientation,
    )


def deduplicate(
    entities: Sequence[Entity], precision: int = DEFAULT_CONFIG.dedup_precision
) -> List[Entity]:
    """Drop repeated ``(type, position, orientation)`` tuples.

    This is the one place where source order matters: the first occurrence
    is kept and its passthrough metadata survives.
    """
    seen: Set[DedupKey] = set()
    unique: List[Entity] = []
    for entity in entities:
        key = dedup_key(entity, precision)
        if key in seen:
            continue
        seen.add(key)
        unique.append(entity)
    return unique


def normalize_unit(
    unit: Sequence[Entity], tables: EntityTables = DEFAULT_TABLES
) -> List[Entity]:
    """Shift the unit so its footprint origin sits at tile (0, 0)."""
    bounds = footprint_bounds(unit, tables)
    if bounds is None:
        return []
    dx, dy = bounds.origin
    return [entity.moved((entity.x - dx, entity.y - dy), entity.orientation) for entity in unit]


class TileCompositor:
    """Replicate a unit across a grid and post-process the result."""

    def __init__(
        self,
        tables: EntityTables = DEFAULT_TABLES,
        diagnostics: Optional[LayoutDiagnostics] = None,
        config: TilerConfig = DEFAULT_CONFIG,
    ) -> None:
        self.tables = tables
        self.diagnostics = diagnostics or LayoutDiagnostics()
        self.diagnostics.default_stage = "composition"
        self.config = config
        self._footprint_cache: Dict[CellTransform, TileBounds] = {}

    def compose(self, unit: Sequence[Entity], params: CompositionParams) -> CompositionResult:
        if not unit:
            raise EmptyUnitError("Cannot compose an empty unit")

        if params.rows <= 0 or params.cols <= 0:
            self.diagnostics.info(
                f"Grid {params.rows}x{params.cols} is empty; nothing to compose"
            )
            return CompositionResult()

        # Composed entities are renumbered, so stale numbers are dropped up front
        members = [entity.without_extras("entity_number") for entity in unit]
        if params.normalize:
            members = normalize_unit(members, self.tables)

        self._footprint_cache = {}
        base = self._cell_footprint(members, params.base_transform)
        step_x = max(1, math.ceil(base.width + params.spacing_x - (1 if params.share_x else 0)))
        step_y = max(1, math.ceil(base.height + params.spacing_y - (1 if params.share_y else 0)))

        placed: List[Entity] = []
        for row in range(params.rows):
            transform = params.cell_transform(row)
            cell = self._cell_footprint(members, transform)
            # Turning the unit moves its footprint corner relative to the pivot
            align_x = base.x_start - cell.x_start
            align_y = base.y_start - cell.y_start
            steps, flip_x, flip_y = transform
            for col in range(params.cols):
                offset = (col * step_x + align_x, row * step_y + align_y)
                for entity in members:
                    placed.append(
                        transform_entity(
                            entity,
                            flip_x,
                            flip_y,
                            steps,
                            offset,
                            self.config.snap_granularity,
                        )
                    )

        unique = deduplicate(placed, self.config.dedup_precision)
        dropped = len(placed) - len(unique)

        repairer = DirectionRepairer(self.tables, self.diagnostics, self.config)
        repair = repairer.repair(unique)

        entities = [
            replace(entity, extras={**entity.extras, "entity_number": index + 1})
            for index, entity in enumerate(repair.entities)
        ]
        collisions = self._detect_collisions(entities)
        wires = WireBuilder(self.tables, self.config).build(entities)

        self.diagnostics.info(
            f"Composed {params.rows}x{params.cols} grid: {len(placed)} placed, "
            f"{dropped} duplicates dropped, {len(entities)} entities, "
            f"{len(wires)} wires (step {step_x}x{step_y})"
        )

        return CompositionResult(
            entities=entities,
            wires=wires,
            unresolved=repair.unresolved,
            collisions=collisions,
            step=(step_x, step_y),
            unit_bounds=base,
            duplicates_dropped=dropped,
        )

    def _cell_footprint(self, members: Sequence[Entity], transform: CellTransform) -> TileBounds:
        cached = self._footprint_cache.get(transform)
        if cached is None:
            steps, flip_x, flip_y = transform
            cached = footprint_bounds(members, self.tables, steps, flip_x, flip_y)
            self._footprint_cache[transform] = cached
        return cached

    def _detect_collisions(self, entities: Sequence[Entity]) -> List[TileCollision]:
        grid = TileGrid(self.tables)
        grid.rebuild_from_entities(entities)

        reported = set()
        for collision in grid.collisions:
            pair = (id(collision.owner), id(collision.other))
            if pair in reported:
                continue
            reported.add(pair)
            kept = grid.owner_of(collision.tile)
            self.diagnostics.warning(
                f"Footprints of '{collision.owner.type}' at {collision.owner.position} and "
                f"'{collision.other.type}' at {collision.other.position} overlap "
                f"at tile {collision.tile} (kept by '{kept.type}')",
                entity=collision.other,
            )
        return grid.collisions


def compose(
    unit: Sequence[Entity],
    params: CompositionParams,
    tables: EntityTables = DEFAULT_TABLES,
    diagnostics: Optional[LayoutDiagnostics] = None,
    config: TilerConfig = DEFAULT_CONFIG,
) -> CompositionResult:
    """Convenience wrapper around :class:`TileCompositor`."""
    return TileCompositor(tables, diagnostics, config).compose(unit, params)
