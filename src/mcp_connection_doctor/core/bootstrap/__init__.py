"""Cluster bootstrap: strategies and topology documents."""

from __future__ import annotations

from .engine import (
    BootstrapContext,
    BootstrapResult,
    BootstrapStrategy,
    CccpStrategy,
    FullHttpStrategy,
    StrategyOutcome,
    StrategyStatus,
    TerseHttpStrategy,
    bootstrap,
    default_strategies,
)
from .terse import (
    NodeExt,
    TerseBucketConfig,
    cluster_nodes_from_terse_config,
    fetch_terse_bucket_config,
)

__all__ = [
    "BootstrapContext",
    "BootstrapResult",
    "BootstrapStrategy",
    "CccpStrategy",
    "FullHttpStrategy",
    "NodeExt",
    "StrategyOutcome",
    "StrategyStatus",
    "TerseBucketConfig",
    "TerseHttpStrategy",
    "bootstrap",
    "cluster_nodes_from_terse_config",
    "default_strategies",
    "fetch_terse_bucket_config",
]
