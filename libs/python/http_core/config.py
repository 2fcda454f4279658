from __future__ import annotations

"""Service configuration parsed once from the environment at startup."""

import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ServiceConfig:
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    log_level: str = DEFAULT_LOG_LEVEL


def load_dotenv_if_present(env_path: pathlib.Path) -> None:
    # Optional, no dependency: load simple KEY=VALUE lines
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if '=' in line:
            k, v = line.split('=', 1)
            os.environ.setdefault(k.strip(), v.strip())


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServiceConfig:
    env = os.environ if environ is None else environ
    raw_port = (env.get('PORT') or '').strip()
    port = coerce_port(raw_port) if raw_port else DEFAULT_PORT
    log_level = _coerce_log_level(env.get('LOG_LEVEL') or DEFAULT_LOG_LEVEL)
    return ServiceConfig(port=port, log_level=log_level)


def coerce_port(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f'Invalid port number: {raw!r}') from exc
    if value < 1 or value > 65535:
        raise ValueError(f'Invalid port number: {value}')
    return value


def _coerce_log_level(raw: str) -> str:
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f'Unknown log level: {raw!r}')
    return level


__all__ = ["DEFAULT_PORT", "ServiceConfig", "coerce_port", "load_config", "load_dotenv_if_present"]
