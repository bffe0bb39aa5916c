"""Geometry Kernel
==================

Pure rotation/reflection algebra for positions and orientations, half-tile
snapping, and footprint computation, plus tile occupancy tracking built on
top of footprints.
"""

from .kernel import (
    ORIENTATION_VECTORS,
    TileBounds,
    footprint,
    footprint_bounds,
    orientation_to_vector,
    oriented_size,
    quarter_turns,
    reflect,
    reflect_orientation,
    rotate,
    rotate_orientation,
    snap_point,
    snap_to_half,
    tile_of,
    transform_entity,
    transform_orientation,
    transform_point,
    vector_to_orientation,
)
from .tile_grid import TileCollision, TileGrid

__all__ = [
    "ORIENTATION_VECTORS",
    "TileBounds",
    "footprint",
    "footprint_bounds",
    "orientation_to_vector",
    "oriented_size",
    "quarter_turns",
    "reflect",
    "reflect_orientation",
    "rotate",
    "rotate_orientation",
    "snap_point",
    "snap_to_half",
    "tile_of",
    "transform_entity",
    "transform_orientation",
    "transform_point",
    "vector_to_orientation",
    "TileCollision",
    "TileGrid",
]
