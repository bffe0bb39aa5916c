"""Blueprint document boundary: JSON / exchange strings <-> entities."""

from .document import (
    BlueprintDocument,
    build_document,
    decode_blueprint_string,
    encode_blueprint_string,
    load_document,
    loads_document,
    parse_document,
    remap_wires,
)
from .summary import summarize_entities

__all__ = [
    "BlueprintDocument",
    "build_document",
    "decode_blueprint_string",
    "encode_blueprint_string",
    "load_document",
    "loads_document",
    "parse_document",
    "remap_wires",
    "summarize_entities",
]
