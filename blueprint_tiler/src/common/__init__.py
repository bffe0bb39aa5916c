"""Common utilities shared across layout stages."""

from .diagnostics import LayoutDiagnostics, DiagnosticSeverity, Diagnostic
from .exceptions import (
    LayoutError,
    OrientationError,
    EmptyUnitError,
    BlueprintFormatError,
)
from .entity_data import EntityDataHelper, get_entity_footprint
from .tables import EntityTables, DEFAULT_TABLES
from .constants import *

__all__ = [
    "LayoutDiagnostics",
    "DiagnosticSeverity",
    "Diagnostic",
    "LayoutError",
    "OrientationError",
    "EmptyUnitError",
    "BlueprintFormatError",
    "EntityDataHelper",
    "get_entity_footprint",
    "EntityTables",
    "DEFAULT_TABLES",
    # Constants
    "TilerConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_WIRE_REACH",
    "DEFAULT_WIRE_PORT",
]
