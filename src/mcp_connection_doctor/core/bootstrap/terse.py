"""Terse bucket configuration: document model and HTTP fetch."""

from __future__ import annotations

from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import FetchError
from ..models import ClusterNode, Endpoint, format_address

TERSE_CONFIG_PATH = "/pools/default/b/{bucket}"
HOST_PLACEHOLDER = "$HOST"


class NodeExt(BaseModel):
    """One entry of the terse config's ``nodesExt`` list."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    this_node: bool = Field(default=False, alias="thisNode")
    hostname: str = Field(default="", description="Advertised hostname; empty means the serving host.")
    services: dict[str, int] = Field(default_factory=dict, description="Service name to port.")


class TerseBucketConfig(BaseModel):
    """Per-bucket topology as served by one cluster node."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_host: str = Field(default="", exclude=True, description="Host the document was fetched from.")
    uuid: str = Field(default="", description="Cluster UUID.")
    rev: int = Field(default=0, description="Configuration revision.")
    nodes_ext: list[NodeExt] = Field(default_factory=list, alias="nodesExt")

    def source_node_ext(self) -> NodeExt | None:
        """Return a copy of the node extension describing the serving node."""
        for node in self.nodes_ext:
            if node.this_node:
                return node.model_copy(deep=True)
        return None


def cluster_nodes_from_terse_config(config: TerseBucketConfig) -> list[ClusterNode]:
    """Derive the canonical node list from a single topology.

    One node per ``nodesExt`` entry, in order. Several nodes may share a
    hostname (one host, distinct ports); only entries identical in hostname
    and services collapse.
    """
    nodes: dict[tuple[str, tuple[tuple[str, int], ...]], ClusterNode] = {}
    for node in config.nodes_ext:
        hostname = node.hostname or config.source_host
        key = (hostname, tuple(sorted(node.services.items())))
        if key not in nodes:
            nodes[key] = ClusterNode(hostname=hostname, services=dict(node.services))
    return list(nodes.values())


def terse_config_url(endpoint: Endpoint, bucket: str, *, use_ssl: bool = False) -> str:
    scheme = "https" if use_ssl else "http"
    path = TERSE_CONFIG_PATH.format(bucket=quote(bucket, safe=""))
    return f"{scheme}://{format_address(endpoint.host, endpoint.port)}{path}"


async def fetch_terse_bucket_config(
    client: httpx.AsyncClient,
    endpoint: Endpoint,
    bucket: str,
    password: str,
    *,
    timeout: float = 2.0,
    use_ssl: bool = False,
) -> TerseBucketConfig:
    """Fetch and parse the terse bucket config served by endpoint.

    Raises FetchError on transport failures, non-2xx answers (401 is reported
    as an incorrect bucket/password) and documents that do not parse.
    """
    url = terse_config_url(endpoint, bucket, use_ssl=use_ssl)

    try:
        resp = await client.get(url, auth=(bucket, password), timeout=timeout)
    except httpx.HTTPError as exc:
        raise FetchError(
            f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
            host=endpoint.host,
            port=endpoint.port,
        ) from exc

    if not resp.is_success:
        if resp.status_code == 401:
            message = "incorrect bucket/password"
        else:
            message = f"http error (status code: {resp.status_code})"
        raise FetchError(
            message, host=endpoint.host, port=endpoint.port, status_code=resp.status_code
        )

    body = resp.text.replace(HOST_PLACEHOLDER, endpoint.host)
    try:
        config = TerseBucketConfig.model_validate_json(body)
    except ValidationError as exc:
        raise FetchError(
            f"malformed terse configuration ({exc.error_count()} validation error(s))",
            host=endpoint.host,
            port=endpoint.port,
            status_code=resp.status_code,
        ) from exc

    return config.model_copy(update={"source_host": endpoint.host})
