"""Core data models for connection diagnostics."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

DEFAULT_KV_PORT = 11210
DEFAULT_KV_SSL_PORT = 11207
DEFAULT_HTTP_PORT = 8091
DEFAULT_HTTP_SSL_PORT = 18091

SRV_SCHEMES = ("couchbase", "couchbases")


def format_address(host: str, port: int) -> str:
    """Render host:port, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


@dataclass(frozen=True, slots=True)
class HostAddress:
    """One bootstrap host as written in the connection string."""

    host: str
    port: int | None = None  # None when no explicit port was given


@dataclass(frozen=True, slots=True)
class ConnectionSpec:
    """Parsed, unresolved connection string."""

    scheme: str
    hosts: tuple[HostAddress, ...]
    bucket: str = ""
    options: Mapping[str, str] = field(default_factory=dict)

    @property
    def use_ssl(self) -> bool:
        return self.scheme == "couchbases"

    @property
    def srv_eligible(self) -> bool:
        return (
            self.scheme in SRV_SCHEMES
            and len(self.hosts) == 1
            and self.hosts[0].port is None
        )

    def srv_record_name(self) -> str | None:
        """Return the DNS SRV name to query, or None when SRV does not apply."""
        if not self.srv_eligible:
            return None
        return f"_{self.scheme}._tcp.{self.hosts[0].host}"


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A concrete host/port pair to contact."""

    host: str
    port: int

    @property
    def address(self) -> str:
        return format_address(self.host, self.port)


@dataclass(frozen=True, slots=True)
class SrvRecord:
    """A DNS SRV record (target without the trailing dot)."""

    priority: int
    weight: int
    port: int
    target: str


@dataclass(frozen=True, slots=True)
class ResolvedConnectionSpec:
    """Connection spec expanded into CCCP and HTTP endpoint lists."""

    use_ssl: bool
    cccp_endpoints: tuple[Endpoint, ...]
    http_endpoints: tuple[Endpoint, ...]
    bucket: str = ""
    options: Mapping[str, str] = field(default_factory=dict)
    srv_record_name: str | None = None
    srv_records: tuple[SrvRecord, ...] = ()

    @property
    def used_srv(self) -> bool:
        return bool(self.srv_records)


@dataclass(frozen=True, slots=True)
class ClusterNode:
    """Canonical cluster node with its per-service ports."""

    hostname: str
    services: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Frozen all the way down: services is a read-only view of a private copy.
        object.__setattr__(self, "services", MappingProxyType(dict(self.services)))

    def port_for(self, service: str) -> int:
        return self.services.get(service, 0) or 0
