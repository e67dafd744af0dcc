"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_connection_doctor.core.redaction import redact_text


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def diagnose_cluster_connection(
        connection_string: str,
        include_info: bool = False,
    ) -> list[dict[str, Any]]:
        """Build a prompt for a connectivity diagnosis."""
        shown = redact_text(connection_string)
        return [
            {
                "role": "system",
                "content": (
                    "You are a database connectivity assistant for operators. "
                    "Explain findings precisely and only from tool output. "
                    "Do not invent hosts, ports or errors."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Diagnose the connection string using diagnose_connection. "
                    "Follow this workflow:\n"
                    "- Call diagnose_connection first with the parameters below. If the user "
                    "has a bucket password, ask for it rather than guessing.\n"
                    "- If halted_by is set, explain which stage stopped the diagnosis "
                    "(ParseError, ResolveError or BootstrapExhaustedError) and why.\n"
                    "- Group warnings and errors by stage: connection string, DNS, bootstrap, "
                    "services.\n"
                    "- Point out bootstrap hosts that belong to a different cluster and "
                    "non-canonical hostnames explicitly.\n\n"
                    "Call diagnose_connection with:\n"
                    f"- connection_string: {shown}\n"
                    f"- include_info: {str(include_info).lower()}\n\n"
                    "Return this structure:\n"
                    "1) Verdict (can a client connect? one sentence)\n"
                    "2) Problems found (bullets, quote the event message)\n"
                    "3) Suggested fixes (2-4 bullets)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Optional: the connection string grammar and default ports are in:",
                    },
                    {"type": "resource", "uri": "app://connection-doctor/help"},
                ],
            },
        ]

    @mcp.prompt()
    def create_connectivity_report(
        title: str,
        connection_string: str,
        environment: str = "",
    ) -> list[dict[str, Any]]:
        """Build a prompt that produces a Markdown connectivity report."""
        shown = redact_text(connection_string)
        return [
            {
                "role": "system",
                "content": (
                    "Create a high-quality connectivity report in Markdown. Redact passwords "
                    "and credentials if present."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Title: {title}\n\n"
                    "Please create a report with sections:\n"
                    "- Summary\n"
                    "- Environment (if missing, say 'unknown')\n"
                    "- Bootstrap endpoints\n"
                    "- Cluster nodes and services\n"
                    "- Warnings and errors\n"
                    "- Suggested Fix / Next Actions\n\n"
                    f"Environment provided:\n{environment}\n\n"
                    f"Use tool diagnose_connection on {shown} with include_info=false.\n"
                ),
            },
        ]
