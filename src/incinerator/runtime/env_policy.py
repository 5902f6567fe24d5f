from __future__ import annotations

import os
from typing import Mapping

PORT_ENV_KEY = "PORT"
DEFAULT_PORT = 8123


def env_text(
    name: str,
    *,
    default: str = "",
    environ: Mapping[str, str] | None = None,
) -> str:
    source = os.environ if environ is None else environ
    return source.get(name, default).strip()


def parse_port_text(raw: str) -> int | None:
    text = raw.strip()
    if not text:
        return None
    try:
        value = int(text, 10)
    except (TypeError, ValueError):
        return None
    if value <= 0 or value > 65535:
        return None
    return value


def port_from_env(*, environ: Mapping[str, str] | None = None) -> int | None:
    """Port requested through ``PORT``; ``None`` when unset or not a usable number."""
    return parse_port_text(env_text(PORT_ENV_KEY, environ=environ))
