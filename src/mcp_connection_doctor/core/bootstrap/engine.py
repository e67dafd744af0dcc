"""Bootstrap strategy engine.

Strategies are tried in priority order and the first one that yields a
non-empty node list wins, the way a client bootstraps:

1. CCCP (binary config protocol), not supported by the doctor yet
2. HTTP terse bucket config
3. HTTP full cluster config, not supported by the doctor yet

Within the terse strategy the first endpoint that answers is the master; later
answers are only checked for agreement on the cluster UUID.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import httpx

from ..errors import BootstrapExhaustedError, ConfigMismatchError, FetchError
from ..events import DiagnosticLog
from ..models import ClusterNode, ResolvedConnectionSpec
from ..settings import DoctorSettings
from .terse import TerseBucketConfig, cluster_nodes_from_terse_config, fetch_terse_bucket_config

LOGGER = logging.getLogger(__name__)


class StrategyStatus(str, Enum):
    NODES = "nodes"
    NO_NODES = "no_nodes"
    UNIMPLEMENTED = "unimplemented"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class StrategyOutcome:
    strategy: str
    status: StrategyStatus
    nodes: tuple[ClusterNode, ...] = ()


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    """Node list from the winning strategy plus every outcome on the way."""

    strategy: str
    nodes: tuple[ClusterNode, ...]
    outcomes: tuple[StrategyOutcome, ...]


@dataclass
class BootstrapContext:
    client: httpx.AsyncClient
    sink: DiagnosticLog
    bucket: str
    bucket_password: str = ""
    settings: DoctorSettings = field(default_factory=DoctorSettings)


class BootstrapStrategy(Protocol):
    """Strategy interface: return an outcome, never raise for network trouble."""

    name: str

    async def run(self, spec: ResolvedConnectionSpec, ctx: BootstrapContext) -> StrategyOutcome:
        ...


@dataclass(frozen=True, slots=True)
class CccpStrategy:
    name: str = "CCCP"

    async def run(self, spec: ResolvedConnectionSpec, ctx: BootstrapContext) -> StrategyOutcome:
        if not spec.cccp_endpoints:
            ctx.sink.log("Not attempting CCCP, as the connection string does not support it")
            return StrategyOutcome(self.name, StrategyStatus.SKIPPED)

        ctx.sink.log("Attempting to connect to cluster via CCCP")
        ctx.sink.log("Failed to connect via CCCP, as it is not yet supported by the doctor")
        return StrategyOutcome(self.name, StrategyStatus.UNIMPLEMENTED)


@dataclass(frozen=True, slots=True)
class FullHttpStrategy:
    name: str = "HTTP (Full)"

    async def run(self, spec: ResolvedConnectionSpec, ctx: BootstrapContext) -> StrategyOutcome:
        if not spec.http_endpoints:
            ctx.sink.log("Not attempting HTTP (Full), as the connection string does not support it")
            return StrategyOutcome(self.name, StrategyStatus.SKIPPED)

        ctx.sink.log("Attempting to connect to cluster via HTTP (Full)")
        ctx.sink.log("Failed to connect via HTTP (Full), as it is not yet supported by the doctor")
        return StrategyOutcome(self.name, StrategyStatus.UNIMPLEMENTED)


@dataclass(frozen=True, slots=True)
class TerseHttpStrategy:
    name: str = "HTTP (Terse)"

    async def run(self, spec: ResolvedConnectionSpec, ctx: BootstrapContext) -> StrategyOutcome:
        if not spec.http_endpoints:
            ctx.sink.log("Not attempting HTTP (Terse), as the connection string does not support it")
            return StrategyOutcome(self.name, StrategyStatus.SKIPPED)

        ctx.sink.log("Attempting to connect to cluster via HTTP (Terse)")

        master: TerseBucketConfig | None = None

        for target in spec.http_endpoints:
            ctx.sink.log("Attempting to fetch terse config via http from `%s`", target.address)

            try:
                config = await fetch_terse_bucket_config(
                    ctx.client,
                    target,
                    ctx.bucket,
                    ctx.bucket_password,
                    timeout=ctx.settings.config_fetch_timeout,
                    use_ssl=spec.use_ssl,
                )
            except FetchError as exc:
                ctx.sink.error(
                    "Failed to fetch terse configuration via http from bootstrap host `%s` (error: %s)",
                    target.host,
                    exc,
                    error=exc,
                )
                continue

            if master is None:
                master = config
            elif config.uuid != master.uuid:
                mismatch = ConfigMismatchError(
                    host=target.host, expected_uuid=master.uuid, actual_uuid=config.uuid
                )
                ctx.sink.error(
                    "Bootstrap host `%s` appears to be pointing to a different cluster.  Tests"
                    " will be running against the first successfully connected node in your"
                    " bootstrap list, as a client would behave.",
                    target.host,
                    error=mismatch,
                )

            this_node = config.source_node_ext()
            if this_node is not None and this_node.hostname and this_node.hostname != target.host:
                ctx.sink.warn(
                    "Bootstrap host `%s` is not using the canonical node hostname of `%s`.  This"
                    " is not necessarily an error, but has been known to result in strange and"
                    " difficult-to-diagnose errors in the future when routing gets changed.",
                    target.host,
                    this_node.hostname,
                )

        if master is None:
            return StrategyOutcome(self.name, StrategyStatus.NO_NODES)

        nodes = tuple(cluster_nodes_from_terse_config(master))
        LOGGER.debug("Terse config from %s lists %d node(s)", master.source_host, len(nodes))
        if not nodes:
            return StrategyOutcome(self.name, StrategyStatus.NO_NODES)
        return StrategyOutcome(self.name, StrategyStatus.NODES, nodes)


def default_strategies() -> tuple[BootstrapStrategy, ...]:
    """Strategy chain in client priority order (first success wins)."""
    return (CccpStrategy(), TerseHttpStrategy(), FullHttpStrategy())


async def bootstrap(
    spec: ResolvedConnectionSpec,
    *,
    client: httpx.AsyncClient,
    sink: DiagnosticLog,
    bucket_password: str = "",
    settings: DoctorSettings | None = None,
    strategies: Sequence[BootstrapStrategy] | None = None,
) -> BootstrapResult:
    """Run the strategy chain and return the canonical node list.

    Raises BootstrapExhaustedError when no strategy produced nodes.
    """
    settings = settings or DoctorSettings()
    ctx = BootstrapContext(
        client=client,
        sink=sink,
        bucket=spec.bucket or settings.default_bucket,
        bucket_password=bucket_password,
        settings=settings,
    )

    outcomes: list[StrategyOutcome] = []
    for strategy in strategies if strategies is not None else default_strategies():
        outcome = await strategy.run(spec, ctx)
        outcomes.append(outcome)
        if outcome.nodes:
            return BootstrapResult(
                strategy=outcome.strategy, nodes=outcome.nodes, outcomes=tuple(outcomes)
            )

    raise BootstrapExhaustedError(outcomes)
