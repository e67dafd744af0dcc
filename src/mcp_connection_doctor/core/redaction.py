"""Redaction helpers for report output."""

from __future__ import annotations

import re
from collections.abc import Iterable

REDACTED = "<REDACTED>"

_USERINFO_RE = re.compile(r"(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*://)(?P<user>[^:/@\s]+):[^@/\s]+@")

# Characters that glue a token into a larger host, port, path or name.
_TOKEN_CHARS = r"\w.:/@\-"


def _secret_re(secret: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![{_TOKEN_CHARS}]){re.escape(secret)}(?![{_TOKEN_CHARS}])")


def redact_text(text: str, secrets: Iterable[str] = ()) -> str:
    """Mask known secrets and URL userinfo passwords in a message.

    A secret is only masked where it stands alone, so a password that happens
    to equal a port, host label or bucket name does not mangle addresses such
    as ``10.0.0.1:8091``.
    """
    text = _USERINFO_RE.sub(rf"\g<scheme>\g<user>:{REDACTED}@", text)
    for secret in secrets:
        if secret:
            text = _secret_re(secret).sub(REDACTED, text)
    return text
