"""Blueprint document boundary.

Reads decoded blueprint JSON or exchange strings into :class:`Entity`
collections and writes composed collections back. The string codec itself
is draftsman's; this module only maps between the document shape and the
entity model.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from draftsman.error import MalformedBlueprintStringError  # type: ignore[import-not-found]
from draftsman.utils import JSON_to_string, string_to_JSON  # type: ignore[import-not-found]

from blueprint_tiler.src.common.constants import DEFAULT_CONFIG, TilerConfig
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.exceptions import BlueprintFormatError
from blueprint_tiler.src.model.entity import Entity, entity_to_record, parse_entities


@dataclass
class BlueprintDocument:
    """Entities of one blueprint plus the metadata around them."""

    entities: List[Entity] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    wrapped: bool = True  # input was {"blueprint": {...}} rather than bare

    def to_dict(
        self,
        wires: Optional[Sequence[Sequence[int]]] = None,
        config: TilerConfig = DEFAULT_CONFIG,
        renumber: bool = True,
    ) -> Dict[str, Any]:
        return build_document(self.entities, self.metadata, wires, config, renumber)


def decode_blueprint_string(text: str) -> Dict[str, Any]:
    """Decode a blueprint exchange string with draftsman."""
    try:
        return string_to_JSON(text.strip())
    except (MalformedBlueprintStringError, ValueError) as e:
        raise BlueprintFormatError(f"Malformed blueprint string: {e}") from e


def encode_blueprint_string(document: Mapping[str, Any]) -> str:
    """Encode a blueprint document into an exchange string with draftsman."""
    return JSON_to_string(dict(document))


def parse_document(
    data: Mapping[str, Any],
    diagnostics: LayoutDiagnostics,
    config: TilerConfig = DEFAULT_CONFIG,
) -> BlueprintDocument:
    """Split a decoded blueprint document into entities and metadata."""
    if not isinstance(data, Mapping):
        raise BlueprintFormatError("Blueprint document must be a JSON object")
    if "blueprint_book" in data:
        raise BlueprintFormatError("Blueprint books are not supported; export a single blueprint")

    wrapped = "blueprint" in data
    body = data["blueprint"] if wrapped else data
    if not isinstance(body, Mapping):
        raise BlueprintFormatError("'blueprint' must be a JSON object")

    records = body.get("entities") or []
    if not isinstance(records, list):
        raise BlueprintFormatError("'entities' must be a list")

    metadata = {k: v for k, v in body.items() if k != "entities"}
    entities = parse_entities(records, diagnostics, config)
    skipped = len(records) - len(entities)
    if skipped:
        diagnostics.warning(f"Skipped {skipped} malformed entity record(s)", stage="blueprint")
    return BlueprintDocument(entities=entities, metadata=metadata, wrapped=wrapped)


def load_document(
    path: Path,
    diagnostics: LayoutDiagnostics,
    config: TilerConfig = DEFAULT_CONFIG,
) -> BlueprintDocument:
    """Read a blueprint from a JSON file or a file holding an exchange string."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise BlueprintFormatError(f"Failed to read blueprint file '{path}': {e}") from e
    return loads_document(text, diagnostics, config)


def loads_document(
    text: str,
    diagnostics: LayoutDiagnostics,
    config: TilerConfig = DEFAULT_CONFIG,
) -> BlueprintDocument:
    """Parse blueprint text, either decoded JSON or an exchange string."""
    stripped = text.strip()
    if not stripped:
        raise BlueprintFormatError("Blueprint input is empty")
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise BlueprintFormatError(f"Invalid blueprint JSON: {e}") from e
    else:
        data = decode_blueprint_string(stripped)
    return parse_document(data, diagnostics, config)


def build_document(
    entities: Sequence[Entity],
    metadata: Optional[Mapping[str, Any]] = None,
    wires: Optional[Sequence[Sequence[int]]] = None,
    config: TilerConfig = DEFAULT_CONFIG,
    renumber: bool = True,
) -> Dict[str, Any]:
    """Assemble an importable ``{"blueprint": {...}}`` document.

    Metadata (label, icons, version, ...) is preserved, entities are
    replaced, ``entity_number`` is assigned sequentially from 1 when
    ``renumber`` is set, and ``wires`` replaces any previous wiring when
    given.
    """
    body: Dict[str, Any] = dict(metadata or {})
    records = []
    for index, entity in enumerate(entities):
        record = entity_to_record(entity, config)
        if renumber:
            record["entity_number"] = index + 1
        records.append(record)
    body["entities"] = records
    body.setdefault("item", config.default_item)
    body.setdefault("version", config.default_version)
    if wires is not None:
        body["wires"] = [list(wire) for wire in wires]
    return {"blueprint": body}


def remap_wires(
    wires: Optional[Sequence[Any]],
    number_map: Mapping[Any, int],
    diagnostics: LayoutDiagnostics,
) -> List[List[Any]]:
    """Rewrite ``[a, port_a, b, port_b]`` wire endpoints through ``number_map``.

    Wires whose endpoints are not in the map no longer point at an entity in
    the document and are dropped with a warning.
    """
    remapped: List[List[Any]] = []
    for wire in wires or []:
        if not isinstance(wire, (list, tuple)) or len(wire) != 4:
            diagnostics.warning(f"Dropping malformed wire {wire!r}", stage="blueprint")
            continue
        a, port_a, b, port_b = wire
        if a not in number_map or b not in number_map:
            diagnostics.warning(
                f"Dropping wire {list(wire)!r}: endpoint is not a renumbered entity",
                stage="blueprint",
            )
            continue
        remapped.append([number_map[a], port_a, number_map[b], port_b])
    return remapped
