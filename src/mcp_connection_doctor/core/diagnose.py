"""Diagnosis pipeline.

Runs parse -> resolve -> DNS checks -> bootstrap -> service probes and
reports every finding to a DiagnosticLog. Fatal stage errors stop the
pipeline but never escape diagnose(); the report says which one stopped it.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass

import httpx

from .bootstrap import BootstrapResult, bootstrap
from .connstr import parse_connection_string, resolve_connection_spec
from .dns import AioDnsResolver, DnsResolver, validate_dns
from .errors import BootstrapExhaustedError, ParseError, ResolveError
from .events import DiagnosticEvent, DiagnosticLog, DiagnosticSummary
from .models import ClusterNode, ConnectionSpec, ResolvedConnectionSpec
from .probe import ProbeResult, probe_services
from .redaction import redact_text
from .settings import DoctorSettings, resolve_doctor_settings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiagnosisReport:
    """Everything a single diagnostic run produced."""

    connection_string: str
    spec: ConnectionSpec | None
    resolved: ResolvedConnectionSpec | None
    bootstrap: BootstrapResult | None
    nodes: tuple[ClusterNode, ...]
    probes: tuple[ProbeResult, ...]
    events: tuple[DiagnosticEvent, ...]
    summary: DiagnosticSummary
    halted_by: str | None = None


def _report_resolved(resolved: ResolvedConnectionSpec, sink: DiagnosticLog) -> None:
    if resolved.use_ssl:
        sink.log("Connection string specifies to use secured connections")

    sink.log("Connection string identifies the following CCCP endpoints:")
    for i, ep in enumerate(resolved.cccp_endpoints, start=1):
        sink.log("  %d. %s", i, ep.address)

    sink.log("Connection string identifies the following HTTP endpoints:")
    for i, ep in enumerate(resolved.http_endpoints, start=1):
        sink.log("  %d. %s", i, ep.address)

    sink.log("Connection string specifies bucket `%s`", resolved.bucket)

    for key, value in resolved.options.items():
        sink.log("Connection string specifies option `%s` = `%s`", key, value)


async def _run(
    connection_string: str,
    bucket_password: str,
    *,
    sink: DiagnosticLog,
    client: httpx.AsyncClient,
    dns: DnsResolver,
    settings: DoctorSettings,
) -> tuple[
    ConnectionSpec | None,
    ResolvedConnectionSpec | None,
    BootstrapResult | None,
    list[ProbeResult],
    str | None,
]:
    sink.log("Parsing connection string `%s`", connection_string)
    try:
        spec = parse_connection_string(connection_string)
    except ParseError as exc:
        sink.error(
            "Failed to parse connection string of `%s` (error: %s)",
            connection_string,
            exc,
            error=exc,
        )
        return None, None, None, [], type(exc).__name__

    if spec.srv_eligible:
        sink.log("Connection string was parsed as a potential DNS SRV record")

    try:
        resolved = await resolve_connection_spec(spec, dns=dns, sink=sink)
    except ResolveError as exc:
        sink.error(
            "Failed to properly resolve connection string `%s` (error: %s)",
            connection_string,
            exc,
            error=exc,
        )
        return spec, None, None, [], type(exc).__name__

    if resolved.used_srv:
        sink.log(
            "Connection string endpoints were discovered through the DNS SRV record `%s`",
            resolved.srv_record_name,
        )
    _report_resolved(resolved, sink)
    if not resolved.bucket:
        sink.warn(
            "Connection string does not specify a bucket, the bucket `%s` will be used",
            settings.default_bucket,
        )

    await validate_dns(spec, resolved, dns=dns, sink=sink)

    if resolved.use_ssl:
        sink.warn(
            "The FTS service within Couchbase Server is not currently capable"
            " of serving data through SSL.  As this is the case, your application will"
            " not be able to perform FTS queries with your SSL bootstrap configuration."
        )

    try:
        result = await bootstrap(
            resolved,
            client=client,
            sink=sink,
            bucket_password=bucket_password,
            settings=settings,
        )
    except BootstrapExhaustedError as exc:
        sink.error(
            "All endpoints specified by your connection string were unreachable, further"
            " cluster diagnostics are not possible",
            error=exc,
        )
        return spec, resolved, None, [], type(exc).__name__

    sink.log(
        "Bootstrapped via %s, cluster has %d node(s)", result.strategy, len(result.nodes)
    )

    probes = await probe_services(
        result.nodes,
        use_ssl=resolved.use_ssl,
        client=client,
        sink=sink,
        concurrency=settings.probe_concurrency,
        timeout=settings.probe_timeout,
    )
    return spec, resolved, result, probes, None


async def diagnose(
    connection_string: str,
    bucket_password: str = "",
    *,
    sink: DiagnosticLog | None = None,
    client: httpx.AsyncClient | None = None,
    dns: DnsResolver | None = None,
    settings: DoctorSettings | None = None,
) -> DiagnosisReport:
    """Diagnose connectivity for a connection string.

    An HTTP client and DNS resolver are created (and closed) here only when
    none are injected. Explicit settings are used as given; env overrides
    apply only when settings is None.
    """
    if settings is None:
        settings = resolve_doctor_settings()
    sink = sink or DiagnosticLog()
    sink.add_secret(bucket_password)

    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(httpx.AsyncClient())
        if dns is None:
            dns = AioDnsResolver(timeout_seconds=settings.dns_timeout)

        spec, resolved, result, probes, halted_by = await _run(
            connection_string,
            bucket_password,
            sink=sink,
            client=client,
            dns=dns,
            settings=settings,
        )

    if halted_by is not None:
        LOGGER.debug("Diagnosis halted by %s", halted_by)
    sink.log("Diagnostics completed")

    return DiagnosisReport(
        connection_string=redact_text(connection_string, [bucket_password]),
        spec=spec,
        resolved=resolved,
        bootstrap=result,
        nodes=result.nodes if result is not None else (),
        probes=tuple(probes),
        events=sink.events,
        summary=sink.summary(),
        halted_by=halted_by,
    )
