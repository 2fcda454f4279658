from __future__ import annotations

import socket

from libs.python.http_core import RequestProcessor
from libs.python.served_by import HostnameResolver, build_served_by_handler

DRINK = "coffee"


def build_handler(resolve_hostname: HostnameResolver = socket.gethostname) -> RequestProcessor:
    return build_served_by_handler(DRINK, resolve_hostname)


__all__ = ["DRINK", "build_handler"]
