from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from blueprint_tiler.src.common.constants import DEFAULT_CONFIG, ORIENTATION_COUNT, TilerConfig
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.exceptions import OrientationError
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.connectors.direction_repair import DirectionRepairer, UnresolvedTransfer
from blueprint_tiler.src.geometry.kernel import transform_entity
from blueprint_tiler.src.model.entity import Entity

"""Whole-layout reflection and rotation about the origin."""


@dataclass
class TransformResult:
    entities: List[Entity] = field(default_factory=list)
    unresolved: List[UnresolvedTransfer] = field(default_factory=list)


def transform_layout(
    entities: Sequence[Entity],
    rotate: int = 0,
    flip_x: bool = False,
    flip_y: bool = False,
    strip_numbers: bool = False,
    tables: EntityTables = DEFAULT_TABLES,
    diagnostics: Optional[LayoutDiagnostics] = None,
    config: TilerConfig = DEFAULT_CONFIG,
) -> TransformResult:
    """Reflect then rotate every entity about the origin and snap to half tiles.

    Existing ``entity_number`` values are kept so the layout can be
    re-imported unchanged, unless ``strip_numbers`` is set. Transfer entities
    without an orientation are pointed at an adjacent producer afterwards.
    """
    if isinstance(rotate, bool) or not isinstance(rotate, int) or not 0 <= rotate < ORIENTATION_COUNT:
        raise OrientationError(f"rotate must be an integer 0..3, got {rotate!r}")

    diagnostics = diagnostics or LayoutDiagnostics()
    transformed = []
    for entity in entities:
        moved = transform_entity(entity, flip_x, flip_y, rotate, granularity=config.snap_granularity)
        if strip_numbers:
            moved = moved.without_extras("entity_number")
        transformed.append(moved)

    repair = DirectionRepairer(tables, diagnostics, config).repair(transformed)
    diagnostics.info(
        f"Transformed {len(transformed)} entities (rotate={rotate}, flip_x={flip_x}, flip_y={flip_y})",
        stage="composition",
    )
    return TransformResult(entities=repair.entities, unresolved=repair.unresolved)
