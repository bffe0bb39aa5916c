"""Flow Analyzer
================

Groups transport entities into 4-connected components with a disjoint-set
union, derives lane and component capacity, classifies supply and drain
components and flags bottlenecks.
"""

from .disjoint_set import DisjointSet
from .analyzer import (
    CLASSIFIED_BY_CENTROID,
    CLASSIFIED_BY_TRANSFER,
    HORIZONTAL,
    UNCLASSIFIED,
    VERTICAL,
    FlowAnalyzer,
    FlowComponent,
    FlowReport,
    analyze_flow,
)

__all__ = [
    "DisjointSet",
    "CLASSIFIED_BY_CENTROID",
    "CLASSIFIED_BY_TRANSFER",
    "HORIZONTAL",
    "UNCLASSIFIED",
    "VERTICAL",
    "FlowAnalyzer",
    "FlowComponent",
    "FlowReport",
    "analyze_flow",
]
