from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional
import logging

"""Unified diagnostic collection for the layout pipeline."""


class DiagnosticSeverity(Enum):
    """Severity levels for layout diagnostics."""

    DEBUG = "debug"  # Internal pipeline information
    INFO = "info"  # Informational messages for users
    WARNING = "warning"  # Recoverable issues, the batch continues
    ERROR = "error"  # Issues that make the result unusable


SEVERITY_ORDER = [
    DiagnosticSeverity.DEBUG,
    DiagnosticSeverity.INFO,
    DiagnosticSeverity.WARNING,
    DiagnosticSeverity.ERROR,
]

_LOG_LEVELS = {
    DiagnosticSeverity.DEBUG: logging.DEBUG,
    DiagnosticSeverity.INFO: logging.INFO,
    DiagnosticSeverity.WARNING: logging.WARNING,
    DiagnosticSeverity.ERROR: logging.ERROR,
}


@dataclass
class Diagnostic:
    """A single diagnostic message with context."""

    severity: DiagnosticSeverity
    message: str
    stage: str  # parse, geometry, composition, connectors, flow, blueprint
    entity: Optional[Any] = None  # offending entity or raw record if available


class LayoutDiagnostics:
    """Central diagnostic collection for one layout operation.

    Every diagnostic is kept for later inspection and also forwarded to the
    ``blueprint_tiler.<stage>`` logger, so callers can either query the
    collector or rely on logging configuration.

    Usage:
        diagnostics = LayoutDiagnostics()
        diagnostics.warning("Skipping malformed entity", stage="parse")
        if diagnostics.has_errors():
            print(diagnostics.format_for_user())
    """

    def __init__(self, verbose: bool = False, debug: bool = False):
        self.diagnostics: List[Diagnostic] = []
        self.verbose = verbose
        self.debug = debug
        self._error_count = 0
        self._warning_count = 0
        self.default_stage = "unknown"

    def debug_message(
        self, message: str, stage: str | None = None, entity: Optional[Any] = None
    ) -> None:
        """Add an internal message (only kept in debug mode)."""
        if self.debug:
            self._add(DiagnosticSeverity.DEBUG, message, stage, entity)

    def info(
        self, message: str, stage: str | None = None, entity: Optional[Any] = None
    ) -> None:
        """Add an informational message (kept in verbose mode)."""
        if self.verbose or self.debug:
            self._add(DiagnosticSeverity.INFO, message, stage, entity)

    def warning(
        self, message: str, stage: str | None = None, entity: Optional[Any] = None
    ) -> None:
        """Add a warning (always kept, does not stop processing)."""
        self._add(DiagnosticSeverity.WARNING, message, stage, entity)
        self._warning_count += 1

    def error(
        self, message: str, stage: str | None = None, entity: Optional[Any] = None
    ) -> None:
        """Add an error (always kept, marks the result as failed)."""
        self._add(DiagnosticSeverity.ERROR, message, stage, entity)
        self._error_count += 1

    def _add(
        self,
        severity: DiagnosticSeverity,
        message: str,
        stage: str | None,
        entity: Optional[Any],
    ) -> None:
        diag = Diagnostic(
            severity=severity,
            message=message,
            stage=stage or self.default_stage,
            entity=entity,
        )
        self.diagnostics.append(diag)
        logging.getLogger(f"blueprint_tiler.{diag.stage}").log(
            _LOG_LEVELS[severity], message
        )

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return self._error_count > 0

    def error_count(self) -> int:
        """Get the number of errors."""
        return self._error_count

    def warning_count(self) -> int:
        """Get the number of warnings."""
        return self._warning_count

    def by_stage(self, stage: str) -> List[Diagnostic]:
        """Return all diagnostics recorded for ``stage``."""
        return [diag for diag in self.diagnostics if diag.stage == stage]

    def get_messages(
        self, min_severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    ) -> List[str]:
        """Get formatted messages at or above the specified severity level."""
        threshold = SEVERITY_ORDER.index(min_severity)
        return [
            self._format_diagnostic(diag)
            for diag in self.diagnostics
            if SEVERITY_ORDER.index(diag.severity) >= threshold
        ]

    def _format_diagnostic(self, diag: Diagnostic) -> str:
        # Format: SEVERITY [stage]: message
        return f"{diag.severity.value.upper()} [{diag.stage}]: {diag.message}"

    def format_for_user(self) -> str:
        """Format all diagnostics for user-friendly output."""
        if not self.diagnostics:
            return "No diagnostics."

        if self.debug:
            min_severity = DiagnosticSeverity.DEBUG
        elif self.verbose:
            min_severity = DiagnosticSeverity.INFO
        else:
            min_severity = DiagnosticSeverity.WARNING

        messages = self.get_messages(min_severity)
        summary = (
            f"\nLayout summary: {self._error_count} error(s), "
            f"{self._warning_count} warning(s)"
        )
        return "\n".join(messages) + summary

    def merge(self, other: "LayoutDiagnostics") -> None:
        """Merge diagnostics from another collector."""
        self.diagnostics.extend(other.diagnostics)
        self._error_count += other._error_count
        self._warning_count += other._warning_count
