"""Connection string parsing and resolution."""

from __future__ import annotations

from .parser import parse_connection_string
from .resolver import resolve_connection_spec

__all__ = [
    "parse_connection_string",
    "resolve_connection_spec",
]
