from __future__ import annotations

import pathlib

from libs.python.http_core import ServiceConfig, load_dotenv_if_present
from libs.python.http_core import load_config as _load_env_config

ENV_PATH = pathlib.Path(__file__).parent / ".env"


def load_config() -> ServiceConfig:
    load_dotenv_if_present(ENV_PATH)
    return _load_env_config()
