"""Error taxonomy for connection diagnostics.

Only ParseError, ResolveError and BootstrapExhaustedError halt a diagnosis;
the rest are reported as events and the run carries on.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .bootstrap.engine import StrategyOutcome


class DiagnosticError(Exception):
    """Base class for every error raised by the diagnostic core."""


class ParseError(DiagnosticError, ValueError):
    """The connection string cannot be decomposed into scheme/hosts/bucket/options."""


class ResolveError(DiagnosticError):
    """The parsed connection spec cannot be turned into endpoints."""


class DnsLookupError(DiagnosticError):
    """A DNS query failed for a reason other than the name not existing."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"DNS lookup failed for '{name}': {message}")


class FetchError(DiagnosticError):
    """Fetching a topology document from one bootstrap endpoint failed."""

    def __init__(
        self,
        message: str,
        *,
        host: str,
        port: int,
        status_code: int | None = None,
    ):
        self.host = host
        self.port = port
        self.status_code = status_code
        super().__init__(message)

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class ConfigMismatchError(DiagnosticError):
    """A bootstrap host returned a topology for a different cluster."""

    def __init__(self, *, host: str, expected_uuid: str, actual_uuid: str):
        self.host = host
        self.expected_uuid = expected_uuid
        self.actual_uuid = actual_uuid
        super().__init__(
            f"cluster uuid `{actual_uuid}` from `{host}` does not match `{expected_uuid}`"
        )


class BootstrapExhaustedError(DiagnosticError):
    """No bootstrap strategy produced a node list."""

    def __init__(self, outcomes: Sequence[StrategyOutcome] = ()):
        self.outcomes = tuple(outcomes)
        super().__init__("no bootstrap strategy produced a cluster node list")


class ProbeError(DiagnosticError):
    """A service on a cluster node could not be reached."""

    def __init__(self, message: str, *, host: str, port: int, service: str):
        self.host = host
        self.port = port
        self.service = service
        super().__init__(message)
