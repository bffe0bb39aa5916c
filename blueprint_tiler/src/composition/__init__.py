"""Tile Compositor
==================

Replicates a unit layout across a grid under rotation and reflection,
deduplicates coinciding tiles, repairs transfer orientations, renumbers the
result and rebuilds the wiring. Also exposes the single-layout transform.
"""

from .compositor import (
    CompositionParams,
    CompositionResult,
    TileCompositor,
    compose,
    dedup_key,
    deduplicate,
    normalize_unit,
)
from .transform import TransformResult, transform_layout

__all__ = [
    "CompositionParams",
    "CompositionResult",
    "TileCompositor",
    "compose",
    "dedup_key",
    "deduplicate",
    "normalize_unit",
    "TransformResult",
    "transform_layout",
]
