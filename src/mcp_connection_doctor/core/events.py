"""Diagnostic event sink.

Every stage reports through a DiagnosticLog instead of printing. The log keeps
the events in order, mirrors them to stdlib logging and can render the final
summary the CLI prints.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from .errors import DiagnosticError
from .redaction import redact_text

LOGGER = logging.getLogger("mcp_connection_doctor.events")


class EventKind(str, Enum):
    """Severity of a diagnostic event."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


_LOG_LEVELS = {
    EventKind.INFO: logging.INFO,
    EventKind.WARNING: logging.WARNING,
    EventKind.ERROR: logging.ERROR,
}

_TAGS = {
    EventKind.INFO: "INFO",
    EventKind.WARNING: "WARN",
    EventKind.ERROR: "ERRO",
}


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """One reported line, optionally tied to the error that caused it."""

    kind: EventKind
    message: str
    error: DiagnosticError | None = None

    def format(self) -> str:
        return f"[{_TAGS[self.kind]}] {self.message}"


@dataclass(frozen=True, slots=True)
class DiagnosticSummary:
    info: int = 0
    warnings: int = 0
    errors: int = 0

    @property
    def has_issues(self) -> bool:
        return self.warnings > 0 or self.errors > 0


class DiagnosticLog:
    """Accumulating event sink shared by all diagnostic stages."""

    def __init__(
        self,
        *,
        secrets: Iterable[str] = (),
        on_event: Callable[[DiagnosticEvent], None] | None = None,
    ) -> None:
        self._events: list[DiagnosticEvent] = []
        self._secrets = tuple(s for s in secrets if s)
        self._on_event = on_event

    @property
    def events(self) -> tuple[DiagnosticEvent, ...]:
        return tuple(self._events)

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets = (*self._secrets, secret)

    def log(self, msg: str, *args: object) -> DiagnosticEvent:
        return self._emit(EventKind.INFO, msg, args, None)

    def warn(self, msg: str, *args: object) -> DiagnosticEvent:
        return self._emit(EventKind.WARNING, msg, args, None)

    def error(
        self, msg: str, *args: object, error: DiagnosticError | None = None
    ) -> DiagnosticEvent:
        return self._emit(EventKind.ERROR, msg, args, error)

    def _emit(
        self,
        kind: EventKind,
        msg: str,
        args: tuple[object, ...],
        error: DiagnosticError | None,
    ) -> DiagnosticEvent:
        text = msg % args if args else msg
        event = DiagnosticEvent(kind=kind, message=redact_text(text, self._secrets), error=error)
        self._events.append(event)
        LOGGER.log(_LOG_LEVELS[kind], "%s", event.message)
        if self._on_event is not None:
            self._on_event(event)
        return event

    def of_kind(self, kind: EventKind) -> list[DiagnosticEvent]:
        return [e for e in self._events if e.kind == kind]

    def errors_of_type(self, error_type: type[DiagnosticError]) -> list[DiagnosticEvent]:
        return [e for e in self._events if isinstance(e.error, error_type)]

    def summary(self) -> DiagnosticSummary:
        return DiagnosticSummary(
            info=len(self.of_kind(EventKind.INFO)),
            warnings=len(self.of_kind(EventKind.WARNING)),
            errors=len(self.of_kind(EventKind.ERROR)),
        )

    def format_summary(self) -> str:
        """Render warnings and errors followed by a one-line verdict."""
        issues = [e for e in self._events if e.kind != EventKind.INFO]
        summary = self.summary()
        lines = ["Summary:"]
        lines.extend(e.format() for e in issues)
        if not issues:
            lines.append("[INFO] No issues found")
        lines.append("")
        if summary.has_issues:
            lines.append(
                f"Found {summary.errors} error(s) and {summary.warnings} warning(s), "
                "see listing above."
            )
        else:
            lines.append("Found no issues with your configuration.")
        return "\n".join(lines)
