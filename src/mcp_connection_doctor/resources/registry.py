"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_connection_doctor.core.bootstrap import TerseBucketConfig
from mcp_connection_doctor.core.models import (
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTP_SSL_PORT,
    DEFAULT_KV_PORT,
    DEFAULT_KV_SSL_PORT,
)
from mcp_connection_doctor.core.probe import PROBED_SERVICES
from mcp_connection_doctor.core.settings import resolve_doctor_settings

EXAMPLE_CONNECTION_STRINGS = {
    "multi-host": "couchbase://10.0.0.1,10.0.0.2/travel-sample",
    "dns-srv": "couchbase://cluster.example.com/travel-sample",
    "secured": "couchbases://node1.example.com,node2.example.com/travel-sample",
    "custom-kv-port": "couchbase://node1.example.com:12000/travel-sample",
    "http-scheme": "http://node1.example.com:9000/travel-sample",
    "with-options": "couchbase://node1.example.com/travel-sample?kv_timeout=5s",
}


def default_ports() -> dict[str, dict[str, int]]:
    """Return the default bootstrap ports per connection security."""
    return {
        "plain": {"cccp": DEFAULT_KV_PORT, "http": DEFAULT_HTTP_PORT},
        "secured": {"cccp": DEFAULT_KV_SSL_PORT, "http": DEFAULT_HTTP_SSL_PORT},
    }


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://connection-doctor/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        services = ", ".join(PROBED_SERVICES)
        return (
            "Resources:\n"
            "- app://connection-doctor/help\n"
            "- app://connection-doctor/config/default-ports\n"
            "- app://connection-doctor/config/settings\n"
            "- app://connection-doctor/schemas/terse-bucket-config\n"
            "- app://connection-doctor/examples/connection-strings\n"
            "\nConnection string grammar:\n"
            "  [scheme://]host[:port][,host[:port]...][/bucket][?key=value&...]\n"
            "  schemes: couchbase, couchbases, http (none means http)\n"
            f"\nProbed services: {services}\n"
        )

    @mcp.resource("app://connection-doctor/config/default-ports")
    def default_ports_resource() -> dict[str, dict[str, int]]:
        """Return the default CCCP and HTTP ports."""
        return default_ports()

    @mcp.resource("app://connection-doctor/config/settings")
    def settings_resource() -> dict[str, Any]:
        """Return the effective settings (defaults plus environment overrides)."""
        return asdict(resolve_doctor_settings(None))

    @mcp.resource("app://connection-doctor/schemas/terse-bucket-config")
    def terse_config_schema() -> dict[str, Any]:
        """Return the JSON schema for the terse bucket config document."""
        return TerseBucketConfig.model_json_schema(by_alias=True)

    @mcp.resource("app://connection-doctor/examples/connection-strings")
    def example_connection_strings() -> dict[str, str]:
        """Return example connection strings for demos and tests."""
        return dict(EXAMPLE_CONNECTION_STRINGS)
