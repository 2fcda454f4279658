from __future__ import annotations

import logging

from libs.python.http_core import RequestHandler, ServiceConfig, run_server

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
STARTUP_LOGGER = "http_core.server"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # the startup line stays visible under any LOG_LEVEL
    startup = logging.getLogger(STARTUP_LOGGER)
    startup.setLevel(min(logging.INFO, logging.getLevelName(level)))


def run_service(config: ServiceConfig, handler: RequestHandler) -> None:
    configure_logging(config.log_level)
    run_server(handler, config.port, host=config.host)


__all__ = ["LOG_FORMAT", "configure_logging", "run_service"]
