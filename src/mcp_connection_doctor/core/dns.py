"""DNS lookups and bootstrap-host DNS validation.

SRV queries go through aiodns; plain host lookups use the event loop's
getaddrinfo. A name that does not exist is an empty answer, not an error;
DnsLookupError is reserved for lookups that could not be completed.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass, field
from typing import Protocol

import aiodns

from .errors import DnsLookupError
from .events import DiagnosticLog
from .models import ConnectionSpec, ResolvedConnectionSpec, SrvRecord

LOGGER = logging.getLogger(__name__)

# c-ares status codes for "no such name" and "no records of that type".
_NO_RECORD_CODES = frozenset(
    {
        getattr(aiodns.error, "ARES_ENODATA", 1),
        getattr(aiodns.error, "ARES_ENOTFOUND", 4),
    }
)

_NO_HOST_GAI_ERRORS = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
    )
    if code is not None
)


class DnsResolver(Protocol):
    """Lookups the diagnostic stages need from DNS."""

    async def lookup_srv(self, name: str) -> list[SrvRecord]:
        """Return SRV records for name ([] when none exist)."""
        ...

    async def lookup_host(self, host: str) -> list[str]:
        """Return the unique addresses host resolves to ([] when it does not exist)."""
        ...


@dataclass
class AioDnsResolver:
    """DnsResolver backed by aiodns (SRV) and getaddrinfo (A/AAAA)."""

    timeout_seconds: float = 5.0
    _resolver: aiodns.DNSResolver | None = field(default=None, repr=False)

    async def lookup_srv(self, name: str) -> list[SrvRecord]:
        # aiodns needs a running loop, so create it lazily.
        if self._resolver is None:
            self._resolver = aiodns.DNSResolver()

        try:
            answers = await asyncio.wait_for(
                self._resolver.query(name, "SRV"),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise DnsLookupError(name, f"SRV query timed out ({self.timeout_seconds}s)") from exc
        except aiodns.error.DNSError as exc:
            if exc.args and exc.args[0] in _NO_RECORD_CODES:
                return []
            raise DnsLookupError(name, f"SRV query failed: {exc}") from exc

        records = [
            SrvRecord(
                priority=answer.priority,
                weight=answer.weight,
                port=answer.port,
                target=answer.host.rstrip("."),
            )
            for answer in answers or []
        ]
        # Lower priority first, heavier weight first within a priority.
        records.sort(key=lambda r: (r.priority, -r.weight))
        return records

    async def lookup_host(self, host: str) -> list[str]:
        try:
            results = await asyncio.wait_for(
                asyncio.get_running_loop().getaddrinfo(
                    host,
                    0,
                    family=socket.AF_UNSPEC,
                    type=socket.SOCK_STREAM,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise DnsLookupError(host, f"lookup timed out ({self.timeout_seconds}s)") from exc
        except socket.gaierror as exc:
            if exc.errno in _NO_HOST_GAI_ERRORS:
                return []
            raise DnsLookupError(host, str(exc)) from exc

        addresses: list[str] = []
        for _family, _type, _proto, _canonname, sockaddr in results:
            addr = sockaddr[0]
            if addr not in addresses:
                addresses.append(addr)
        return addresses


async def validate_dns(
    spec: ConnectionSpec,
    resolved: ResolvedConnectionSpec,
    *,
    dns: DnsResolver,
    sink: DiagnosticLog,
) -> None:
    """Cross-check the literal bootstrap hosts against DNS.

    Only reports events; bootstrap goes ahead whatever is found here.
    """
    srv_name_host = spec.hosts[0].host if resolved.used_srv else None

    if resolved.used_srv:
        try:
            srv_addrs = await dns.lookup_host(spec.hosts[0].host)
        except DnsLookupError as exc:
            LOGGER.debug("A lookup for SRV name failed: %s", exc)
            srv_addrs = []
        if srv_addrs:
            sink.warn(
                "The hostname specified in your connection string resolves both for SRV"
                " records, as well as A records.  This is not suggested as later DNS"
                " configuration changes could cause the wrong servers to be contacted"
            )
    elif len(spec.hosts) == 1:
        sink.warn(
            "Your connection string specifies only a single host.  You should"
            " consider adding additional static nodes from your cluster to this"
            " list to improve your applications fault-tolerance"
        )

    for target in spec.hosts:
        sink.log("Performing DNS lookup for host `%s`", target.host)

        try:
            addrs = await dns.lookup_host(target.host)
        except DnsLookupError as exc:
            sink.error(
                "Failed to perform DNS lookup for bootstrap entry `%s` (error: %s)",
                target.host,
                exc,
                error=exc,
            )
            continue

        if not addrs:
            if target.host == srv_name_host:
                sink.log(
                    "Bootstrap host `%s` has no A records, it is only used through its SRV records",
                    target.host,
                )
                continue
            sink.error("Bootstrap host `%s` does not have a valid DNS entry.", target.host)
        elif len(addrs) > 1:
            sink.warn(
                "Bootstrap host `%s` has more than one single DNS entry associated.  While this"
                " is not necessarily an error, it has been known to cause difficult-to-diagnose"
                " problems in the future when routing is changed or the cluster layout is updated.",
                target.host,
            )
        elif addrs[0] != target.host:
            sink.log(
                "Bootstrap host `%s` refers to a server with the address `%s`",
                target.host,
                addrs[0],
            )
