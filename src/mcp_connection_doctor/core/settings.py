"""Runtime settings and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class DoctorSettings:
    config_fetch_timeout: float = 2.0
    # None keeps the HTTP client's own default timeout for service probes.
    probe_timeout: float | None = None
    dns_timeout: float = 5.0
    probe_concurrency: int = 1
    default_bucket: str = "default"


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def resolve_doctor_settings(settings: DoctorSettings | None = None) -> DoctorSettings:
    """Return settings with optional env overrides applied."""
    if settings is None:
        settings = DoctorSettings()

    overrides: dict[str, object] = {}

    fetch_timeout = _env_float("CONN_DOCTOR_FETCH_TIMEOUT")
    if fetch_timeout is not None:
        overrides["config_fetch_timeout"] = fetch_timeout

    dns_timeout = _env_float("CONN_DOCTOR_DNS_TIMEOUT")
    if dns_timeout is not None:
        overrides["dns_timeout"] = dns_timeout

    probe_timeout = _env_float("CONN_DOCTOR_PROBE_TIMEOUT")
    if probe_timeout is not None:
        overrides["probe_timeout"] = probe_timeout

    concurrency = _env_int("CONN_DOCTOR_PROBE_CONCURRENCY")
    if concurrency is not None:
        overrides["probe_concurrency"] = concurrency

    if not overrides:
        return settings
    return replace(settings, **overrides)
