"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import httpx

from mcp_connection_doctor.core.diagnose import DiagnosisReport, diagnose
from mcp_connection_doctor.core.dns import DnsResolver
from mcp_connection_doctor.core.events import DiagnosticEvent, DiagnosticLog, EventKind
from mcp_connection_doctor.core.settings import DoctorSettings, resolve_doctor_settings

MAX_PROBE_CONCURRENCY = 32


def _event_to_dict(event: DiagnosticEvent) -> dict[str, Any]:
    d: dict[str, Any] = {
        "kind": event.kind.value.lower(),
        "message": event.message,
    }
    if event.error is not None:
        d["error_type"] = type(event.error).__name__
    return d


def report_to_dict(report: DiagnosisReport, *, include_info: bool = True) -> dict[str, Any]:
    """Convert a DiagnosisReport into a JSON-serializable dict."""
    events = [
        _event_to_dict(e)
        for e in report.events
        if include_info or e.kind != EventKind.INFO
    ]

    endpoints: dict[str, Any] | None = None
    if report.resolved is not None:
        endpoints = {
            "use_ssl": report.resolved.use_ssl,
            "bucket": report.resolved.bucket,
            "srv_record_name": report.resolved.srv_record_name,
            "used_srv": report.resolved.used_srv,
            "cccp": [ep.address for ep in report.resolved.cccp_endpoints],
            "http": [ep.address for ep in report.resolved.http_endpoints],
        }

    bootstrap: dict[str, Any] | None = None
    if report.bootstrap is not None:
        bootstrap = {
            "strategy": report.bootstrap.strategy,
            "outcomes": [
                {"strategy": o.strategy, "status": o.status.value}
                for o in report.bootstrap.outcomes
            ],
        }

    return {
        "connection_string": report.connection_string,
        "halted_by": report.halted_by,
        "summary": {
            "info": report.summary.info,
            "warnings": report.summary.warnings,
            "errors": report.summary.errors,
        },
        "endpoints": endpoints,
        "bootstrap": bootstrap,
        "nodes": [
            {"hostname": n.hostname, "services": dict(n.services)} for n in report.nodes
        ],
        "probes": [
            {
                "hostname": p.hostname,
                "service": p.service,
                "port": p.port,
                "status": p.status.value,
                "error": p.error,
            }
            for p in report.probes
        ],
        "events": events,
    }


async def diagnose_connection_impl(
    *,
    connection_string: str,
    bucket_password: str | None = None,
    probe_concurrency: int | None = None,
    include_info: bool = True,
    settings: DoctorSettings | None = None,
    client: httpx.AsyncClient | None = None,
    dns: DnsResolver | None = None,
) -> dict[str, Any]:
    """Implementation for the `diagnose_connection` MCP tool."""
    if not connection_string or not connection_string.strip():
        raise ValueError("connection_string must not be empty")

    if settings is None:
        settings = resolve_doctor_settings()
    if probe_concurrency is not None:
        if probe_concurrency <= 0:
            raise ValueError("probe_concurrency must be > 0")
        settings = replace(
            settings, probe_concurrency=min(probe_concurrency, MAX_PROBE_CONCURRENCY)
        )

    report = await diagnose(
        connection_string.strip(),
        bucket_password or "",
        sink=DiagnosticLog(),
        client=client,
        dns=dns,
        settings=settings,
    )
    return report_to_dict(report, include_info=include_info)
