"""Entity model shared by every layout stage."""

from .entity import (
    Entity,
    entity_from_record,
    entity_to_record,
    parse_entities,
    direction_to_orientation,
    validate_orientation,
)

__all__ = [
    "Entity",
    "entity_from_record",
    "entity_to_record",
    "parse_entities",
    "direction_to_orientation",
    "validate_orientation",
]
