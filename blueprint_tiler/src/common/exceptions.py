from typing import Any, Optional

"""Exceptions raised by the layout core."""


class LayoutError(Exception):
    """Base class for layout processing errors."""

    def __init__(self, message: str, record: Optional[Any] = None) -> None:
        self.message = message
        self.record = record
        detail = f" (entity: {record!r})" if record is not None else ""
        super().__init__(f"{message}{detail}")


class OrientationError(LayoutError, ValueError):
    """Raised when an orientation cannot be mapped onto the four cardinal steps."""


class EmptyUnitError(LayoutError):
    """Raised when a composition unit has no entities."""


class BlueprintFormatError(LayoutError):
    """Raised when a blueprint document cannot be read."""
