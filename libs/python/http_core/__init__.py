"""Shared HTTP server primitives used across Python services."""

from .chain import RequestProcessor, build_processor, html_error, html_response, not_found
from .config import ServiceConfig, load_config, load_dotenv_if_present
from .errors import BindError, HandlerError
from .http import Handler, HttpRequest, HttpResponse, RequestContext, Route
from .server import RequestHandler, bind_listener, run_server, serve_forever

__all__ = [
    "BindError",
    "Handler",
    "HandlerError",
    "HttpRequest",
    "HttpResponse",
    "RequestContext",
    "RequestHandler",
    "RequestProcessor",
    "Route",
    "ServiceConfig",
    "bind_listener",
    "build_processor",
    "html_error",
    "html_response",
    "load_config",
    "load_dotenv_if_present",
    "not_found",
    "run_server",
    "serve_forever",
]
