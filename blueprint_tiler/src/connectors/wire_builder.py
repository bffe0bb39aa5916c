"""Reach-limited, axis-aligned wiring between distribution nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from blueprint_tiler.src.common.constants import AXIS_EPSILON, DEFAULT_CONFIG, TilerConfig
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.model.entity import Entity



@dataclass(frozen=True)
class WireEdge:
    """Unordered pair of node ids, stored with ``a < b``."""

    a: int
    b: int

    @classmethod
    def between(cls, first: int, second: int) -> "WireEdge":
        return cls(min(first, second), max(first, second))

    def to_tuple(self, port: int) -> List[int]:
        """Blueprint wire tuple ``[a, port, b, port]``."""
        return [self.a, port, self.b, port]


@dataclass(frozen=True)
class DistributionNode:
    node_id: int
    x: float
    y: float


class WireBuilder:
    """Connect each node to its nearest neighbour to the east and to the south.

    Only nodes on exactly the same row (or column) within ``wire_reach``
    tiles are candidates. The result is a sparse grid-aligned graph rather
    than a spanning tree or a full mesh.
    """

    def __init__(
        self, tables: EntityTables = DEFAULT_TABLES, config: TilerConfig = DEFAULT_CONFIG
    ) -> None:
        self.tables = tables
        self.config = config

    def collect_nodes(self, entities: Sequence[Entity]) -> List[DistributionNode]:
        """Distribution nodes keyed by their 1-based index in ``entities``."""
        return [
            DistributionNode(node_id=index + 1, x=entity.x, y=entity.y)
            for index, entity in enumerate(entities)
            if self.tables.is_distribution_node(entity.type)
        ]

    def build(self, entities: Sequence[Entity], reach: Optional[float] = None) -> List[WireEdge]:
        reach = self.config.wire_reach if reach is None else reach
        nodes = self.collect_nodes(entities)
        edges: List[WireEdge] = []
        seen: Set[WireEdge] = set()

        def add(first: int, second: int) -> None:
            edge = WireEdge.between(first, second)
            if edge in seen:
                return
            seen.add(edge)
            edges.append(edge)

        for node in nodes:
            east = self._nearest(
                node,
                nodes,
                reach,
                same_line=lambda q: abs(q.y - node.y) < AXIS_EPSILON,
                offset=lambda q: q.x - node.x,
            )
            if east is not None:
                add(node.node_id, east.node_id)

            south = self._nearest(
                node,
                nodes,
                reach,
                same_line=lambda q: abs(q.x - node.x) < AXIS_EPSILON,
                offset=lambda q: q.y - node.y,
            )
            if south is not None:
                add(node.node_id, south.node_id)

        return edges

    @staticmethod
    def _nearest(node, nodes, reach, same_line, offset) -> Optional[DistributionNode]:
        best: Optional[Tuple[float, int, DistributionNode]] = None
        for other in nodes:
            if other.node_id == node.node_id or not same_line(other):
                continue
            distance = offset(other)
            if distance <= 0 or distance > reach:
                continue
            candidate = (distance, other.node_id, other)
            if best is None or candidate[:2] < best[:2]:
                best = candidate
        return best[2] if best else None


def synthesize_wires(
    entities: Sequence[Entity],
    tables: EntityTables = DEFAULT_TABLES,
    config: TilerConfig = DEFAULT_CONFIG,
) -> List[List[int]]:
    """Build wire tuples ``[a, port, b, port]`` for ``entities``."""
    edges = WireBuilder(tables, config).build(entities)
    return [edge.to_tuple(config.wire_port) for edge in edges]
