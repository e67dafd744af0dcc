from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from mcp_connection_doctor.core.errors import DnsLookupError
from mcp_connection_doctor.core.events import DiagnosticLog
from mcp_connection_doctor.core.models import SrvRecord


@dataclass
class FakeDns:
    """In-memory DnsResolver; names not listed do not exist."""

    hosts: dict[str, list[str]] = field(default_factory=dict)
    srv: dict[str, list[SrvRecord]] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    srv_queries: list[str] = field(default_factory=list)
    host_queries: list[str] = field(default_factory=list)

    async def lookup_srv(self, name: str) -> list[SrvRecord]:
        self.srv_queries.append(name)
        if name in self.failing:
            raise DnsLookupError(name, "SERVFAIL")
        return list(self.srv.get(name, []))

    async def lookup_host(self, host: str) -> list[str]:
        self.host_queries.append(host)
        if host in self.failing:
            raise DnsLookupError(host, "SERVFAIL")
        return list(self.hosts.get(host, []))


@pytest.fixture
def fake_dns() -> FakeDns:
    return FakeDns()


@pytest.fixture
def sink() -> DiagnosticLog:
    return DiagnosticLog()


@pytest.fixture
def terse_config() -> Callable[..., str]:
    def _build(
        *,
        uuid: str = "cluster-a",
        rev: int = 1,
        nodes: list[dict[str, Any]] | None = None,
    ) -> str:
        if nodes is None:
            nodes = [
                {
                    "thisNode": True,
                    "hostname": "$HOST",
                    "services": {"kv": 11210, "mgmt": 8091, "capi": 8092, "n1ql": 8093},
                }
            ]
        return json.dumps({"rev": rev, "uuid": uuid, "nodesExt": nodes})

    return _build


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
