"""The single-route "served by <hostname>" service shared by coffee and tea."""

from .handlers import HostnameResolver, build_served_by_handler, render_served_by
from .runner import configure_logging, run_service

__all__ = [
    "HostnameResolver",
    "build_served_by_handler",
    "configure_logging",
    "render_served_by",
    "run_service",
]
