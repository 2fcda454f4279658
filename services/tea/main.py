from __future__ import annotations

import logging
import sys

from libs.python.http_core import BindError
from libs.python.served_by import run_service
from .app.handlers import build_handler
from .config import load_config

logger = logging.getLogger("services.tea")


def main() -> None:
    try:
        cfg = load_config()
        run_service(cfg, build_handler())
    except (BindError, ValueError) as exc:
        logger.critical("[tea] fatal error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover - cli entry point
    main()
