from __future__ import annotations

import asyncio
import socket
from types import SimpleNamespace

import aiodns
import pytest

from mcp_connection_doctor.core.connstr import parse_connection_string, resolve_connection_spec
from mcp_connection_doctor.core.dns import AioDnsResolver, validate_dns
from mcp_connection_doctor.core.errors import DnsLookupError
from mcp_connection_doctor.core.events import EventKind
from mcp_connection_doctor.core.models import SrvRecord


async def _validate(raw: str, fake_dns, sink) -> None:
    spec = parse_connection_string(raw)
    resolved = await resolve_connection_spec(spec, dns=fake_dns)
    await validate_dns(spec, resolved, dns=fake_dns, sink=sink)


def _messages(sink, kind: EventKind) -> list[str]:
    return [e.message for e in sink.of_kind(kind)]


@pytest.mark.asyncio
async def test_missing_dns_entry_is_error(fake_dns, sink) -> None:
    fake_dns.hosts["good.example.com"] = ["10.0.0.1"]

    await _validate("couchbase://good.example.com,missing.example.com/b", fake_dns, sink)

    errors = _messages(sink, EventKind.ERROR)
    assert len(errors) == 1
    assert "missing.example.com" in errors[0]
    assert sink.of_kind(EventKind.WARNING) == []


@pytest.mark.asyncio
async def test_multiple_addresses_is_warning(fake_dns, sink) -> None:
    fake_dns.hosts["a.example.com"] = ["10.0.0.1", "10.0.0.2"]
    fake_dns.hosts["b.example.com"] = ["10.0.0.3"]

    await _validate("couchbase://a.example.com,b.example.com/b", fake_dns, sink)

    warnings = _messages(sink, EventKind.WARNING)
    assert len(warnings) == 1
    assert "a.example.com" in warnings[0]
    assert any("10.0.0.3" in m for m in _messages(sink, EventKind.INFO))


@pytest.mark.asyncio
async def test_lookup_failure_is_error(fake_dns, sink) -> None:
    fake_dns.failing.add("broken.example.com")
    fake_dns.hosts["ok.example.com"] = ["10.0.0.1"]

    await _validate("couchbase://broken.example.com,ok.example.com", fake_dns, sink)

    errors = sink.errors_of_type(DnsLookupError)
    assert len(errors) == 1
    assert "broken.example.com" in errors[0].message


@pytest.mark.asyncio
async def test_single_host_warns_about_fault_tolerance(fake_dns, sink) -> None:
    fake_dns.hosts["10.0.0.1"] = ["10.0.0.1"]

    await _validate("couchbase://10.0.0.1/b", fake_dns, sink)

    warnings = _messages(sink, EventKind.WARNING)
    assert len(warnings) == 1
    assert "single host" in warnings[0]


@pytest.mark.asyncio
async def test_srv_name_without_a_record_is_clean(fake_dns, sink) -> None:
    fake_dns.srv["_couchbase._tcp.cbsrv.example.com"] = [
        SrvRecord(0, 0, 11210, "node1.example.com"),
        SrvRecord(0, 0, 11210, "node2.example.com"),
    ]

    await _validate("couchbase://cbsrv.example.com/b", fake_dns, sink)

    assert sink.of_kind(EventKind.WARNING) == []
    assert sink.of_kind(EventKind.ERROR) == []


@pytest.mark.asyncio
async def test_srv_name_with_a_record_warns(fake_dns, sink) -> None:
    fake_dns.srv["_couchbase._tcp.cbsrv.example.com"] = [
        SrvRecord(0, 0, 11210, "node1.example.com"),
    ]
    fake_dns.hosts["cbsrv.example.com"] = ["10.0.0.9"]

    await _validate("couchbase://cbsrv.example.com/b", fake_dns, sink)

    warnings = _messages(sink, EventKind.WARNING)
    assert len(warnings) == 1
    assert "SRV" in warnings[0]


@pytest.mark.asyncio
async def test_validator_does_not_touch_resolved_spec(fake_dns, sink) -> None:
    spec = parse_connection_string("couchbase://a.example.com,b.example.com")
    resolved = await resolve_connection_spec(spec, dns=fake_dns)
    before = (resolved.cccp_endpoints, resolved.http_endpoints)

    await validate_dns(spec, resolved, dns=fake_dns, sink=sink)

    assert (resolved.cccp_endpoints, resolved.http_endpoints) == before


class _FakeAres:
    def __init__(self, answers=None, exc: Exception | None = None):
        self._answers = answers
        self._exc = exc

    async def query(self, name: str, qtype: str):
        assert qtype == "SRV"
        if self._exc is not None:
            raise self._exc
        return self._answers


@pytest.mark.asyncio
async def test_aiodns_resolver_sorts_srv_records() -> None:
    answers = [
        SimpleNamespace(priority=10, weight=5, port=11210, host="c.example.com."),
        SimpleNamespace(priority=0, weight=1, port=11210, host="b.example.com."),
        SimpleNamespace(priority=0, weight=9, port=11210, host="a.example.com."),
    ]
    resolver = AioDnsResolver(_resolver=_FakeAres(answers=answers))

    records = await resolver.lookup_srv("_couchbase._tcp.example.com")

    assert [r.target for r in records] == ["a.example.com", "b.example.com", "c.example.com"]


@pytest.mark.asyncio
async def test_aiodns_resolver_no_records_is_empty() -> None:
    exc = aiodns.error.DNSError(getattr(aiodns.error, "ARES_ENOTFOUND", 4), "Domain name not found")
    resolver = AioDnsResolver(_resolver=_FakeAres(exc=exc))

    assert await resolver.lookup_srv("_couchbase._tcp.example.com") == []


@pytest.mark.asyncio
async def test_aiodns_resolver_other_failure_raises() -> None:
    exc = aiodns.error.DNSError(getattr(aiodns.error, "ARES_ESERVFAIL", 3), "Server failed")
    resolver = AioDnsResolver(_resolver=_FakeAres(exc=exc))

    with pytest.raises(DnsLookupError):
        await resolver.lookup_srv("_couchbase._tcp.example.com")


@pytest.mark.asyncio
async def test_lookup_host_dedupes_addresses(monkeypatch) -> None:
    loop = asyncio.get_running_loop()

    async def fake_getaddrinfo(host, port, *, family=0, type=0, proto=0, flags=0):
        return [
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.1", 0)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.1", 0)),
            (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("fd00::1", 0, 0, 0)),
        ]

    monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)

    assert await AioDnsResolver().lookup_host("db.example.com") == ["10.0.0.1", "fd00::1"]


@pytest.mark.asyncio
async def test_lookup_host_unknown_name_is_empty(monkeypatch) -> None:
    loop = asyncio.get_running_loop()

    async def fake_getaddrinfo(host, port, *, family=0, type=0, proto=0, flags=0):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)

    assert await AioDnsResolver().lookup_host("nope.example.com") == []
