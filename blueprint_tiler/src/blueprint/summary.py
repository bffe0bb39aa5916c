from collections import Counter
from typing import Dict, Sequence

from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.model.entity import Entity

"""Entity counts grouped by role."""


def summarize_entities(
    entities: Sequence[Entity], tables: EntityTables = DEFAULT_TABLES
) -> Dict[str, object]:
    counts = Counter(entity.type for entity in entities)

    def role_counts(predicate) -> Dict[str, int]:
        return {name: counts[name] for name in sorted(counts) if predicate(name)}

    producers = role_counts(tables.is_producer)
    transfers = role_counts(tables.is_transfer)
    transport = role_counts(tables.is_transport)
    nodes = role_counts(tables.is_distribution_node)
    grouped = set(producers) | set(transfers) | set(transport) | set(nodes)

    unoriented = sum(
        1 for e in entities if tables.is_transfer(e.type) and e.orientation is None
    )
    return {
        "total_entities": len(entities),
        "counts": {name: counts[name] for name in sorted(counts)},
        "producers": {**producers, "total": sum(producers.values())},
        "transfers": {**transfers, "total": sum(transfers.values())},
        "transport": {**transport, "total": sum(transport.values())},
        "distribution_nodes": {**nodes, "total": sum(nodes.values())},
        "other_counts": {name: counts[name] for name in sorted(counts) if name not in grouped},
        "unoriented_transfers": unoriented,
    }
