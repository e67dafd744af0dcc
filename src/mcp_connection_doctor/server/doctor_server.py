"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (e.g., diagnose a connection string)
- Resources: addressable data blobs (e.g., default ports, config schema)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_connection_doctor.server.doctor_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_connection_doctor.prompts.registry import register_prompts
from mcp_connection_doctor.resources.registry import register_resources
from mcp_connection_doctor.tools.diagnose import diagnose_connection_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv("CONN_DOCTOR_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("connection-doctor", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def diagnose_connection(
    connection_string: str,
    bucket_password: str | None = None,
    probe_concurrency: int | None = None,
    include_info: bool = True,
) -> dict[str, Any]:
    """Diagnose why a client might fail to connect with a connection string.

    Parameters
    ----------
    connection_string:
        Couchbase connection string, e.g. couchbase://10.0.0.1,10.0.0.2/travel-sample.
        A single host without a port on a couchbase:// or couchbases:// scheme is
        also tried as a DNS SRV name.
    bucket_password:
        Password used (with the bucket name) to fetch the bucket configuration.
    probe_concurrency:
        Number of nodes whose services are probed at the same time (default 1).
    include_info:
        When false, only warning and error events are returned.

    Returns
    -------
    dict:
        {"halted_by": str | None, "summary": {...}, "endpoints": {...},
         "bootstrap": {...}, "nodes": [...], "probes": [...], "events": [...]}
    """
    return await diagnose_connection_impl(
        connection_string=connection_string,
        bucket_password=bucket_password,
        probe_concurrency=probe_concurrency,
        include_info=include_info,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
