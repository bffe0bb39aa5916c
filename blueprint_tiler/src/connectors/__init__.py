"""Connector Synthesizer
=======================

Post-processing for any entity collection:

1. Direction repair – point orientation-less transfer entities at an
   adjacent producer.
2. Wiring – connect distribution nodes to their nearest axis-aligned
   neighbours within reach.
"""

from .direction_repair import (
    DirectionRepairer,
    RepairResult,
    UnresolvedTransfer,
    repair_directions,
)
from .wire_builder import DistributionNode, WireBuilder, WireEdge, synthesize_wires

__all__ = [
    "DirectionRepairer",
    "RepairResult",
    "UnresolvedTransfer",
    "repair_directions",
    "DistributionNode",
    "WireBuilder",
    "WireEdge",
    "synthesize_wires",
]
