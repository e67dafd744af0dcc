"""Per-node service reachability probes."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from .errors import ProbeError
from .events import DiagnosticLog
from .models import ClusterNode, format_address

PROBED_SERVICES = ("kv", "mgmt", "capi", "n1ql", "fts")
HTTP_SERVICES = frozenset({"mgmt", "capi", "n1ql", "fts"})


class ProbeStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    NOT_TESTED = "not_tested"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    hostname: str
    service: str
    port: int
    status: ProbeStatus
    error: str | None = None

    @property
    def address(self) -> str:
        return format_address(self.hostname, self.port)


async def _probe_http(
    node: ClusterNode,
    service: str,
    port: int,
    *,
    client: httpx.AsyncClient,
    sink: DiagnosticLog,
    timeout: float | None = None,
) -> ProbeResult:
    label = service.upper()
    address = format_address(node.hostname, port)
    try:
        kwargs: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        await client.get(f"http://{address}/", **kwargs)
    except httpx.HTTPError as exc:
        err = ProbeError(
            f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
            host=node.hostname,
            port=port,
            service=service,
        )
        sink.error(
            "Failed to connect to %s service at `%s` (error: %s)", label, address, err, error=err
        )
        return ProbeResult(node.hostname, service, port, ProbeStatus.FAILED, str(err))

    sink.log("Successfully connected to %s service at `%s`", label, address)
    return ProbeResult(node.hostname, service, port, ProbeStatus.OK)


async def _probe_node(
    node: ClusterNode,
    *,
    client: httpx.AsyncClient,
    sink: DiagnosticLog,
    timeout: float | None = None,
) -> list[ProbeResult]:
    results: list[ProbeResult] = []
    for service in PROBED_SERVICES:
        port = node.port_for(service)
        if not port:
            continue

        if service == "kv":
            # TODO: ping the memcached port with a NOOP once a binary client exists.
            sink.log(
                "KV service at `%s` was not tested.  Not yet implemented.",
                format_address(node.hostname, port),
            )
            results.append(ProbeResult(node.hostname, service, port, ProbeStatus.NOT_TESTED))
            continue

        results.append(
            await _probe_http(node, service, port, client=client, sink=sink, timeout=timeout)
        )
    return results


async def probe_services(
    nodes: Sequence[ClusterNode],
    *,
    use_ssl: bool,
    client: httpx.AsyncClient,
    sink: DiagnosticLog,
    concurrency: int = 1,
    timeout: float | None = None,
) -> list[ProbeResult]:
    """Probe every advertised service on every node.

    A failure is reported and probing continues. Nodes may be probed
    concurrently (bounded by concurrency); results keep node/service order.
    timeout applies to each probe request; None keeps the client's default.
    """
    if use_ssl:
        sink.error("Testing of SSL connections is not yet supported")
        return []

    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    if concurrency == 1:
        results: list[ProbeResult] = []
        for node in nodes:
            results.extend(await _probe_node(node, client=client, sink=sink, timeout=timeout))
        return results

    semaphore = asyncio.Semaphore(concurrency)

    async def run(node: ClusterNode) -> list[ProbeResult]:
        async with semaphore:
            return await _probe_node(node, client=client, sink=sink, timeout=timeout)

    per_node = await asyncio.gather(*(run(node) for node in nodes))
    return [result for node_results in per_node for result in node_results]
