from __future__ import annotations

import re
import socket
from http import HTTPStatus
from typing import Callable

from libs.python.http_core import (
    HandlerError,
    HttpResponse,
    RequestContext,
    RequestProcessor,
    Route,
    build_processor,
    html_response,
)

HostnameResolver = Callable[[], str]


def render_served_by(drink: str, hostname: str) -> str:
    # hostname is inserted verbatim, no escaping
    return f"<h3>Your {drink} has been served by {hostname}</h3>"


def build_served_by_handler(drink: str, resolve_hostname: HostnameResolver = socket.gethostname) -> RequestProcessor:
    """Build the processor answering ``GET /<drink>`` with the serving hostname.

    The hostname is looked up on every request, so a renamed host shows up
    without a restart.
    """

    def handle_served_by(_: RequestContext) -> HttpResponse:
        try:
            hostname = resolve_hostname()
        except OSError as exc:
            raise HandlerError(f"could not resolve hostname: {exc}") from exc
        return html_response(HTTPStatus.OK, render_served_by(drink, hostname))

    routes = [
        Route(
            drink,
            re.compile(rf"^/{re.escape(drink)}/?$", re.IGNORECASE),
            {"GET"},
            handle_served_by,
        ),
    ]
    return build_processor(routes)


__all__ = ["HostnameResolver", "build_served_by_handler", "render_served_by"]
