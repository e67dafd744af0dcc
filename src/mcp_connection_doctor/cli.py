from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace

from mcp_connection_doctor.core.diagnose import diagnose
from mcp_connection_doctor.core.events import DiagnosticEvent, DiagnosticLog
from mcp_connection_doctor.core.settings import resolve_doctor_settings
from mcp_connection_doctor.tools.diagnose import report_to_dict

BANNER = r"""|====================================================================|
|          ___ ___  _  __   ___   ___   ___ _____ ___  ___           |
|         / __|   \| |/ /__|   \ / _ \ / __|_   _/ _ \| _ \          |
|         \__ \ |) | ' <___| |) | (_) | (__  | || (_) |   /          |
|         |___/___/|_|\_\  |___/ \___/ \___| |_| \___/|_|_\          |
|                                                                    |
|====================================================================|
"""

STABILITY_NOTE = (
    "Note: Diagnostics can only provide accurate results when your cluster\n"
    " is in a stable state.  Active rebalancing and other cluster configuration\n"
    " changes can cause the output of the doctor to be inconsistent or in the\n"
    " worst cases, completely incorrect.\n"
)


def _positive_float(s: str) -> float:
    try:
        value = float(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a number: {s}") from e
    if value <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return value


def _positive_int(s: str) -> int:
    try:
        value = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an integer: {s}") from e
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _configure_logging() -> None:
    # Events are printed on stdout; library logging stays quiet unless asked for.
    level_name = os.getenv("CONN_DOCTOR_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_event(event: DiagnosticEvent) -> None:
    print(event.format(), flush=True)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="connection-doctor",
        description=(
            "Diagnose runs various tests against your network and cluster to identify"
            " any flaws in your configuration that would cause failures in development"
            " or production environments."
        ),
    )
    p.add_argument("connection_string", nargs="?", default=None)
    p.add_argument("-p", "--bucket-password", default="", help="bucket password")
    p.add_argument("--probe-concurrency", type=_positive_int, default=None, help="Nodes probed in parallel (default: 1)")
    p.add_argument("--fetch-timeout", type=_positive_float, default=None, help="Seconds to wait for each bucket config fetch (default: 2)")
    p.add_argument("--json", dest="as_json", action="store_true", help="Print the report as JSON instead of event lines")
    p.add_argument("--no-banner", action="store_true", help="Do not print the banner and stability note")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint: diagnose one connection string and print the findings."""
    p = build_parser()
    args = p.parse_args(argv)
    _configure_logging()

    if not args.as_json and not args.no_banner:
        print(BANNER)
        print(STABILITY_NOTE)

    if not args.connection_string:
        print("Error: You must specify a connection string for your cluster", file=sys.stderr)
        raise SystemExit(2)

    try:
        settings = resolve_doctor_settings(None)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    if args.probe_concurrency is not None:
        settings = replace(settings, probe_concurrency=args.probe_concurrency)
    if args.fetch_timeout is not None:
        settings = replace(settings, config_fetch_timeout=args.fetch_timeout)

    sink = DiagnosticLog(on_event=None if args.as_json else _print_event)
    report = asyncio.run(
        diagnose(
            args.connection_string,
            args.bucket_password,
            sink=sink,
            settings=settings,
        )
    )

    if args.as_json:
        print(json.dumps(report_to_dict(report), indent=2))
        return

    print()
    print(sink.format_summary())


if __name__ == "__main__":
    main()
