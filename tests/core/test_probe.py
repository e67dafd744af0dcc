from __future__ import annotations

import asyncio

import httpx
import pytest

from mcp_connection_doctor.core.errors import ProbeError
from mcp_connection_doctor.core.events import EventKind
from mcp_connection_doctor.core.models import ClusterNode
from mcp_connection_doctor.core.probe import ProbeStatus, probe_services


def _node(hostname: str, **services: int) -> ClusterNode:
    return ClusterNode(hostname=hostname, services=services)


@pytest.mark.asyncio
async def test_ssl_refuses_with_one_error_and_no_requests(mock_client, sink) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200)

    nodes = [_node("n1", mgmt=18091, kv=11207), _node("n2", mgmt=18091)]
    async with mock_client(handler) as client:
        results = await probe_services(nodes, use_ssl=True, client=client, sink=sink)

    assert results == []
    assert requests == []
    assert [e.message for e in sink.events] == ["Testing of SSL connections is not yet supported"]
    assert sink.events[0].kind == EventKind.ERROR


@pytest.mark.asyncio
async def test_services_probed_in_order_and_kv_not_tested(mock_client, sink) -> None:
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(404)

    node = _node("10.0.0.1", fts=8094, n1ql=8093, capi=8092, mgmt=8091, kv=11210, eventing=8096)
    async with mock_client(handler) as client:
        results = await probe_services([node], use_ssl=False, client=client, sink=sink)

    assert [(r.service, r.status) for r in results] == [
        ("kv", ProbeStatus.NOT_TESTED),
        ("mgmt", ProbeStatus.OK),
        ("capi", ProbeStatus.OK),
        ("n1ql", ProbeStatus.OK),
        ("fts", ProbeStatus.OK),
    ]
    assert urls == [
        "http://10.0.0.1:8091/",
        "http://10.0.0.1:8092/",
        "http://10.0.0.1:8093/",
        "http://10.0.0.1:8094/",
    ]
    assert sink.of_kind(EventKind.ERROR) == []


@pytest.mark.asyncio
async def test_unadvertised_services_are_skipped(mock_client, sink) -> None:
    async with mock_client(lambda request: httpx.Response(200)) as client:
        results = await probe_services(
            [_node("n1", mgmt=8091)], use_ssl=False, client=client, sink=sink
        )

    assert [r.service for r in results] == ["mgmt"]


@pytest.mark.asyncio
async def test_failed_service_does_not_stop_probing(mock_client, sink) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.port == 8093:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200)

    nodes = [_node("n1", mgmt=8091, n1ql=8093), _node("n2", mgmt=8091)]
    async with mock_client(handler) as client:
        results = await probe_services(nodes, use_ssl=False, client=client, sink=sink)

    assert [(r.hostname, r.service, r.status) for r in results] == [
        ("n1", "mgmt", ProbeStatus.OK),
        ("n1", "n1ql", ProbeStatus.FAILED),
        ("n2", "mgmt", ProbeStatus.OK),
    ]
    failures = sink.errors_of_type(ProbeError)
    assert len(failures) == 1
    assert "n1:8093" in failures[0].message
    assert failures[0].error.service == "n1ql"
    assert "connection refused" in results[1].error


@pytest.mark.asyncio
async def test_concurrent_probing_keeps_node_order(mock_client, sink) -> None:
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        # Earlier nodes answer last.
        await asyncio.sleep(0.01 * (5 - int(request.url.host[1:])))
        in_flight -= 1
        return httpx.Response(200)

    nodes = [_node(f"n{i}", mgmt=8091) for i in range(1, 5)]
    async with mock_client(handler) as client:
        results = await probe_services(
            nodes, use_ssl=False, client=client, sink=sink, concurrency=2
        )

    assert [r.hostname for r in results] == ["n1", "n2", "n3", "n4"]
    assert peak == 2


@pytest.mark.asyncio
async def test_invalid_concurrency(mock_client, sink) -> None:
    async with mock_client(lambda request: httpx.Response(200)) as client:
        with pytest.raises(ValueError):
            await probe_services([], use_ssl=False, client=client, sink=sink, concurrency=0)


@pytest.mark.asyncio
async def test_timeout_applies_to_each_service_request(mock_client, sink) -> None:
    timeouts: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200)

    node = _node("n1", mgmt=8091, n1ql=8093)
    async with mock_client(handler) as client:
        await probe_services([node], use_ssl=False, client=client, sink=sink, timeout=1.5)
        assert [t["read"] for t in timeouts] == [1.5, 1.5]

        timeouts.clear()
        await probe_services([node], use_ssl=False, client=client, sink=sink)
        assert timeouts == [client.timeout.as_dict()] * 2
