"""Connection spec resolution.

Expands a parsed ConnectionSpec into the CCCP and HTTP endpoint lists a client
would bootstrap from, applying per-scheme default ports and DNS SRV discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..dns import DnsResolver
from ..errors import DnsLookupError, ResolveError
from ..events import DiagnosticLog
from ..models import (
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTP_SSL_PORT,
    DEFAULT_KV_PORT,
    DEFAULT_KV_SSL_PORT,
    ConnectionSpec,
    Endpoint,
    HostAddress,
    ResolvedConnectionSpec,
    SrvRecord,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _SchemeRules:
    use_ssl: bool
    kv_scheme: bool  # explicit ports name the KV port rather than the HTTP port
    explicit: bool


_SCHEMES: dict[str, _SchemeRules] = {
    "couchbase": _SchemeRules(use_ssl=False, kv_scheme=True, explicit=True),
    "couchbases": _SchemeRules(use_ssl=True, kv_scheme=True, explicit=True),
    "http": _SchemeRules(use_ssl=False, kv_scheme=False, explicit=True),
    "": _SchemeRules(use_ssl=False, kv_scheme=False, explicit=False),
}


def _default_ports(use_ssl: bool) -> tuple[int, int]:
    """Return (kv_port, http_port) for the connection security."""
    if use_ssl:
        return DEFAULT_KV_SSL_PORT, DEFAULT_HTTP_SSL_PORT
    return DEFAULT_KV_PORT, DEFAULT_HTTP_PORT


def _endpoints_for(
    host: str, port: int | None, rules: _SchemeRules
) -> tuple[Endpoint, Endpoint]:
    kv_default, http_default = _default_ports(rules.use_ssl)

    if rules.explicit and not rules.kv_scheme and port == DEFAULT_KV_PORT:
        raise ResolveError(
            f"port {port} of host `{host}` is the memcached port, which is not valid "
            "for the http:// scheme; use couchbase://"
        )

    if port is None or port in (kv_default, http_default):
        return Endpoint(host, kv_default), Endpoint(host, http_default)

    if not rules.explicit:
        raise ResolveError(
            f"ambiguous port {port} for host `{host}` without a scheme; "
            "use couchbase:// or http:// to say which service the port belongs to"
        )

    if rules.kv_scheme:
        return Endpoint(host, port), Endpoint(host, http_default)
    return Endpoint(host, kv_default), Endpoint(host, port)


def _expand(
    addresses: list[HostAddress], rules: _SchemeRules
) -> tuple[tuple[Endpoint, ...], tuple[Endpoint, ...]]:
    cccp: list[Endpoint] = []
    http: list[Endpoint] = []
    for address in addresses:
        kv_ep, http_ep = _endpoints_for(address.host, address.port, rules)
        cccp.append(kv_ep)
        http.append(http_ep)
    return tuple(cccp), tuple(http)


async def _lookup_srv(
    name: str, *, dns: DnsResolver, sink: DiagnosticLog | None
) -> list[SrvRecord]:
    try:
        records = await dns.lookup_srv(name)
    except DnsLookupError as exc:
        LOGGER.debug("SRV lookup for %s failed: %s", name, exc)
        if sink is not None:
            sink.warn(
                "Failed to look up DNS SRV records for `%s`, using the hostname as a"
                " normal bootstrap host (error: %s)",
                name,
                exc,
            )
        return []

    if not records and sink is not None:
        sink.log(
            "No DNS SRV records found for `%s`, using the hostname as a normal bootstrap host",
            name,
        )
    return records


async def resolve_connection_spec(
    spec: ConnectionSpec,
    *,
    dns: DnsResolver,
    sink: DiagnosticLog | None = None,
) -> ResolvedConnectionSpec:
    """Resolve a ConnectionSpec into concrete endpoints.

    DNS trouble never fails resolution: the single literal host is used when
    the SRV query errors or returns nothing. ResolveError is raised only for
    specs no client could use (unknown scheme, ambiguous ports).
    """
    rules = _SCHEMES.get(spec.scheme)
    if rules is None:
        raise ResolveError(f"unsupported scheme `{spec.scheme}`")

    srv_name = spec.srv_record_name()
    srv_records: list[SrvRecord] = []
    if srv_name is not None:
        srv_records = await _lookup_srv(srv_name, dns=dns, sink=sink)

    if srv_records:
        addresses = [HostAddress(host=r.target, port=r.port) for r in srv_records]
    else:
        addresses = list(spec.hosts)

    cccp, http = _expand(addresses, rules)

    return ResolvedConnectionSpec(
        use_ssl=rules.use_ssl,
        cccp_endpoints=cccp,
        http_endpoints=http,
        bucket=spec.bucket,
        options=dict(spec.options),
        srv_record_name=srv_name,
        srv_records=tuple(srv_records),
    )
