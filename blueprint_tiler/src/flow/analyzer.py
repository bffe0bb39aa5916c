"""Flow Analyzer: transport network segmentation and lane capacity.

Transport entities (types present in the speed table) are keyed by the tile
they sit on and unioned with their 4-neighbours. Each resulting component
gets a dominant axis, parallel lanes along the other axis, and a capacity
that sums the per-lane minimum speed. Transfer entities next to a component
then decide which components feed producers (supplies) and which are fed by
them (the drain).

Nothing here depends on the order of the input collection: members are
sorted before any reduction and components are numbered by their smallest
tile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.geometry.kernel import (
    Tile,
    TileBounds,
    footprint,
    orientation_to_vector,
    tile_of,
)
from blueprint_tiler.src.model.entity import Entity
from .disjoint_set import DisjointSet

HORIZONTAL = "horizontal"
VERTICAL = "vertical"

# How supply/drain roles were decided
CLASSIFIED_BY_TRANSFER = "transfer"
CLASSIFIED_BY_CENTROID = "centroid"
UNCLASSIFIED = "none"

_NEIGHBOUR_OFFSETS = ((1, 0), (0, 1))


@dataclass
class FlowComponent:
    """One connected set of transport tiles."""

    index: int
    speeds: Dict[Tile, float]
    axis: str
    lanes: Dict[int, float]
    centroid: Tuple[float, float]

    @property
    def size(self) -> int:
        return len(self.speeds)

    @property
    def capacity(self) -> float:
        return sum(self.lanes[lane] for lane in sorted(self.lanes))

    @property
    def tiles(self) -> List[Tile]:
        return sorted(self.speeds)

    def to_dict(self) -> Dict[str, object]:
        return {
            "capacity": self.capacity,
            "centroid": {"x": self.centroid[0], "y": self.centroid[1]},
            "size": self.size,
        }


@dataclass
class FlowReport:
    components: List[FlowComponent] = field(default_factory=list)
    supply_components: List[int] = field(default_factory=list)
    drain_component: Optional[int] = None
    supplied_capacity_per_second: float = 0.0
    drain_capacity_per_second: float = 0.0
    required_throughput_per_second: float = 0.0
    bottleneck: bool = False
    classified_by: str = UNCLASSIFIED

    @property
    def supplied_capacity_per_minute(self) -> float:
        return self.supplied_capacity_per_second * 60

    @property
    def drain_capacity_per_minute(self) -> float:
        return self.drain_capacity_per_second * 60

    @property
    def required_throughput_per_minute(self) -> float:
        return self.required_throughput_per_second * 60

    def to_dict(self) -> Dict[str, object]:
        return {
            "components": [component.to_dict() for component in self.components],
            "supplyComponents": list(self.supply_components),
            "drainComponent": self.drain_component,
            "suppliedCapacityPerSecond": self.supplied_capacity_per_second,
            "drainCapacityPerSecond": self.drain_capacity_per_second,
            "requiredThroughputPerSecond": self.required_throughput_per_second,
            "bottleneck": self.bottleneck,
            "classifiedBy": self.classified_by,
        }


class FlowAnalyzer:
    """Segment transport entities into components and rate them."""

    def __init__(
        self,
        tables: EntityTables = DEFAULT_TABLES,
        diagnostics: Optional[LayoutDiagnostics] = None,
    ) -> None:
        self.tables = tables
        self.diagnostics = diagnostics or LayoutDiagnostics()

    def analyze(
        self, entities: Sequence[Entity], required_throughput: float = 0.0
    ) -> FlowReport:
        transport = [e for e in entities if self.tables.is_transport(e.type)]
        report = FlowReport(required_throughput_per_second=float(required_throughput))
        if not transport:
            self.diagnostics.info("No transport entities; nothing to analyze", stage="flow")
            return report

        by_tile: Dict[Tile, List[Entity]] = {}
        for entity in transport:
            by_tile.setdefault(tile_of(entity.position), []).append(entity)

        report.components = self._find_components(by_tile)
        producers = [
            footprint(e, self.tables) for e in entities if self.tables.is_producer(e.type)
        ]
        transfers = [
            e
            for e in entities
            if self.tables.is_transfer(e.type) and e.orientation is not None
        ]

        supplies, drains = self._classify_by_transfers(report.components, producers, transfers)
        if supplies or drains:
            report.classified_by = CLASSIFIED_BY_TRANSFER
            report.supply_components = sorted(supplies)
            report.drain_component = min(drains) if drains else None
        else:
            report.classified_by = CLASSIFIED_BY_CENTROID
            report.supply_components, report.drain_component = self._classify_by_centroid(
                report.components
            )

        report.supplied_capacity_per_second = sum(
            report.components[index].capacity for index in report.supply_components
        )
        if report.drain_component is not None:
            drain = report.components[report.drain_component]
            report.drain_capacity_per_second = drain.capacity
            # Meeting capacity exactly already leaves no margin
            report.bottleneck = report.required_throughput_per_second >= drain.capacity

        self.diagnostics.info(
            f"Found {len(report.components)} transport components "
            f"(classified by {report.classified_by}); drain capacity "
            f"{report.drain_capacity_per_second:g}/s, required "
            f"{report.required_throughput_per_second:g}/s",
            stage="flow",
        )
        return report

    def _find_components(self, by_tile: Dict[Tile, List[Entity]]) -> List[FlowComponent]:
        dsu: DisjointSet[Tile] = DisjointSet(sorted(by_tile))
        for tile in by_tile:
            for dx, dy in _NEIGHBOUR_OFFSETS:
                neighbour = (tile[0] + dx, tile[1] + dy)
                if neighbour in by_tile:
                    dsu.union(tile, neighbour)

        groups = sorted((sorted(group) for group in dsu.groups()), key=lambda g: g[0])
        return [
            self._build_component(index, group, by_tile) for index, group in enumerate(groups)
        ]

    def _build_component(
        self, index: int, tiles: List[Tile], by_tile: Dict[Tile, List[Entity]]
    ) -> FlowComponent:
        speeds = {
            tile: min(self.tables.speed_of(e.type) for e in by_tile[tile]) for tile in tiles
        }
        axis = self._dominant_axis(tiles, by_tile)

        lanes: Dict[int, float] = {}
        for (x, y), speed in speeds.items():
            lane = y if axis == HORIZONTAL else x
            # The slowest tile bounds the whole lane
            lanes[lane] = min(speed, lanes.get(lane, speed))

        centroid = (
            sum(x + 0.5 for x, _ in tiles) / len(tiles),
            sum(y + 0.5 for _, y in tiles) / len(tiles),
        )
        return FlowComponent(
            index=index, speeds=speeds, axis=axis, lanes=lanes, centroid=centroid
        )

    @staticmethod
    def _dominant_axis(tiles: List[Tile], by_tile: Dict[Tile, List[Entity]]) -> str:
        sum_x = sum_y = 0
        oriented = False
        for tile in tiles:
            for entity in by_tile[tile]:
                if entity.orientation is None:
                    continue
                oriented = True
                vx, vy = orientation_to_vector(entity.orientation)
                sum_x += vx
                sum_y += vy

        if oriented:
            return HORIZONTAL if abs(sum_x) >= abs(sum_y) else VERTICAL

        span_x = max(x for x, _ in tiles) - min(x for x, _ in tiles)
        span_y = max(y for _, y in tiles) - min(y for _, y in tiles)
        return HORIZONTAL if span_x >= span_y else VERTICAL

    @staticmethod
    def _classify_by_transfers(
        components: List[FlowComponent],
        producers: List[TileBounds],
        transfers: List[Entity],
    ) -> Tuple[Set[int], Set[int]]:
        owner: Dict[Tile, int] = {}
        for component in components:
            for tile in component.speeds:
                owner[tile] = component.index

        def on_producer(tile: Tile) -> bool:
            return any(bounds.contains(tile) for bounds in producers)

        supplies: Set[int] = set()
        drains: Set[int] = set()
        for transfer in transfers:
            x, y = tile_of(transfer.position)
            vx, vy = orientation_to_vector(transfer.orientation)
            drop = (x + vx, y + vy)
            pickup = (x - vx, y - vy)
            if pickup in owner and on_producer(drop):
                supplies.add(owner[pickup])
            if drop in owner and on_producer(pickup):
                drains.add(owner[drop])
        return supplies, drains

    @staticmethod
    def _classify_by_centroid(
        components: List[FlowComponent],
    ) -> Tuple[List[int], Optional[int]]:
        """Best-effort roles from horizontal position alone.

        The drain is the component nearest the horizontal midpoint, the
        supplies are the ones nearest the left and right extremes. This has
        no correctness guarantee for irregular layouts.
        """
        if not components:
            return [], None

        xs = [x for component in components for x, _ in component.speeds]
        min_x = min(xs) + 0.5
        max_x = max(xs) + 0.5
        midpoint = (min_x + max_x) / 2

        def closest(target: float) -> int:
            return min(
                components, key=lambda c: (abs(c.centroid[0] - target), c.index)
            ).index

        drain = closest(midpoint)
        supplies = {closest(min_x), closest(max_x)} - {drain}
        return sorted(supplies), drain


def analyze_flow(
    entities: Sequence[Entity],
    required_throughput: float = 0.0,
    tables: EntityTables = DEFAULT_TABLES,
    diagnostics: Optional[LayoutDiagnostics] = None,
) -> FlowReport:
    """Convenience wrapper around :class:`FlowAnalyzer`."""
    return FlowAnalyzer(tables, diagnostics).analyze(entities, required_throughput)
