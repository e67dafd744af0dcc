"""Connection string parser.

Grammar::

    [scheme://]host[:port][,host[:port]...][/bucket][?key=value&...]

Hosts may be separated by ``,`` or ``;`` and IPv6 literals must be bracketed.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, unquote_plus

from ..errors import ParseError
from ..models import ConnectionSpec, HostAddress

_PARTS_RE = re.compile(
    r"^(?:(?P<scheme>[^:/?]*)://)?(?P<hosts>[^/?]*)(?:/(?P<bucket>[^?]*))?(?:\?(?P<query>.*))?$"
)
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_HOST_RE = re.compile(r"^(?:\[(?P<ipv6>[^\]]+)\]|(?P<name>[^:\[\]\s]+))(?::(?P<port>[^:]*))?$")
_HOST_SEP_RE = re.compile(r"[,;]")


def _parse_port(raw: str, entry: str) -> int:
    if not (raw.isascii() and raw.isdigit()):
        raise ParseError(f"invalid port `{raw}` in host entry `{entry}`")
    port = int(raw)
    if not 1 <= port <= 65535:
        raise ParseError(f"port {port} out of range in host entry `{entry}`")
    return port


def _parse_host(entry: str) -> HostAddress:
    m = _HOST_RE.match(entry)
    if not m:
        raise ParseError(f"malformed host entry `{entry}`")
    host = m.group("ipv6") or m.group("name")
    port_raw = m.group("port")
    port = _parse_port(port_raw, entry) if port_raw is not None else None
    return HostAddress(host=host, port=port)


def _parse_hosts(raw: str) -> tuple[HostAddress, ...]:
    if not raw.strip():
        raise ParseError("connection string does not list any hosts")
    out: list[HostAddress] = []
    for entry in _HOST_SEP_RE.split(raw):
        entry = entry.strip()
        if not entry:
            raise ParseError(f"empty host entry in `{raw}`")
        out.append(_parse_host(entry))
    return tuple(out)


def _parse_options(query: str | None) -> dict[str, str]:
    options: dict[str, str] = {}
    if not query:
        return options
    for pair in query.split("&"):
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ParseError(f"malformed option `{pair}` (expected key=value)")
        options[unquote_plus(key)] = unquote_plus(value)
    return options


def parse_connection_string(raw: str) -> ConnectionSpec:
    """Parse a connection string into a ConnectionSpec.

    Raises ParseError when the string cannot be decomposed. No DNS lookups are
    performed; use ConnectionSpec.srv_record_name() to see whether the result
    is eligible for SRV discovery.
    """
    if not raw or not raw.strip():
        raise ParseError("connection string is empty")

    m = _PARTS_RE.match(raw.strip())
    if not m:
        raise ParseError(f"cannot parse connection string `{raw}`")

    scheme = m.group("scheme")
    if scheme is None:
        scheme = ""
    elif not _SCHEME_RE.match(scheme):
        raise ParseError(f"malformed scheme `{scheme}`")

    bucket = unquote(m.group("bucket") or "")
    if "/" in bucket:
        raise ParseError(f"bucket name `{bucket}` must not contain '/'")

    return ConnectionSpec(
        scheme=scheme.lower(),
        hosts=_parse_hosts(m.group("hosts")),
        bucket=bucket,
        options=_parse_options(m.group("query")),
    )
