from __future__ import annotations

import html
import json
import logging
import time
from http import HTTPStatus
from typing import Dict, Iterable, Optional

from .http import Handler, HttpRequest, HttpResponse, RequestContext, Route

HTML_CONTENT_TYPE = "text/html; charset=utf-8"

access_logger = logging.getLogger("http_core.access")
logger = logging.getLogger("http_core.chain")


def html_response(status: HTTPStatus | int, markup: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
    body = markup.encode("utf-8")
    final_headers = {
        "Content-Type": HTML_CONTENT_TYPE,
        "Content-Length": str(len(body)),
    }
    if headers:
        final_headers.update(headers)
    return HttpResponse(int(status), final_headers, body)


def html_error(status: HTTPStatus | int, message: str) -> HttpResponse:
    return html_response(status, f"<pre>{html.escape(message)}</pre>")


def not_found(request: HttpRequest) -> HttpResponse:
    return html_error(HTTPStatus.NOT_FOUND, f"Cannot {request.method} {request.path}")


class AbstractHandler(Handler):
    def __init__(self) -> None:
        self._next: Optional[Handler] = None

    def set_next(self, handler: Handler) -> Handler:
        self._next = handler
        return handler

    def _handle_next(self, ctx: RequestContext) -> HttpResponse:
        if self._next is None:
            if ctx.response is None:
                ctx.response = html_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Unhandled request")
            return ctx.response
        return self._next.handle(ctx)


class ErrorHandler(AbstractHandler):
    """Turns any exception raised further down the chain into a 500."""

    def handle(self, ctx: RequestContext) -> HttpResponse:  # noqa: D401
        try:
            return self._handle_next(ctx)
        except Exception:  # noqa: BLE001
            logger.exception("%s %s failed", ctx.request.method, ctx.request.path)
            ctx.response = html_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")
            return ctx.response


class LoggingHandler(AbstractHandler):
    def handle(self, ctx: RequestContext) -> HttpResponse:  # noqa: D401
        start = time.time()
        response = self._handle_next(ctx)
        duration_ms = round((time.time() - start) * 1000, 1)
        entry = {
            "ts": int(time.time() * 1000),
            "method": ctx.request.method,
            "path": ctx.request.path,
            "status": int(response.status),
            "ms": duration_ms,
            "remote": ctx.request.client[0] if ctx.request.client else None,
        }
        access_logger.info(json.dumps(entry, separators=(",", ":")))
        return response


class OptionsHandler(AbstractHandler):
    def __init__(self, routes: Iterable[Route]) -> None:
        super().__init__()
        self._routes = list(routes)

    def handle(self, ctx: RequestContext) -> HttpResponse:  # noqa: D401
        if ctx.request.method != "OPTIONS":
            return self._handle_next(ctx)
        allowed = self._allowed_methods(ctx.request.path)
        if not allowed:
            return self._handle_next(ctx)
        allow = ",".join(sorted(allowed))
        ctx.response = html_response(HTTPStatus.OK, allow, {"Allow": allow})
        return ctx.response

    def _allowed_methods(self, path: str) -> set[str]:
        allowed: set[str] = set()
        for route in self._routes:
            if route.pattern.match(path):
                allowed |= route.methods
        if "GET" in allowed:
            allowed.add("HEAD")
        return allowed


class RoutingHandler(AbstractHandler):
    """Matches path and method together; anything else is the default 404."""

    def __init__(self, routes: Iterable[Route]) -> None:
        super().__init__()
        self._routes = list(routes)

    def handle(self, ctx: RequestContext) -> HttpResponse:  # noqa: D401
        for route in self._routes:
            match = route.pattern.match(ctx.request.path)
            if not match or not route.allows(ctx.request.method):
                continue
            ctx.route = route
            ctx.params = match.groupdict()
            return self._handle_next(ctx)
        ctx.response = not_found(ctx.request)
        return ctx.response


class HeadHandler(AbstractHandler):
    def handle(self, ctx: RequestContext) -> HttpResponse:  # noqa: D401
        if ctx.request.method != "HEAD":
            return self._handle_next(ctx)

        original_method = ctx.request.method
        ctx.request.method = "GET"
        try:
            response = self._handle_next(ctx)
        finally:
            ctx.request.method = original_method
        return response


class DispatchHandler(AbstractHandler):
    def handle(self, ctx: RequestContext) -> HttpResponse:  # noqa: D401
        # RoutingHandler only passes requests on with ctx.route set
        ctx.response = ctx.route.handler(ctx)
        return ctx.response


class RequestProcessor:
    """Facade executed by the manual HTTP server."""

    def __init__(self, entry: Handler) -> None:
        self._entry = entry

    def handle(self, request: HttpRequest) -> HttpResponse:
        ctx = RequestContext(request=request)
        response = self._entry.handle(ctx)
        response.ensure_content_length()
        return response


def build_processor(routes: Iterable[Route]) -> RequestProcessor:
    """Assemble the standard handler chain around ``routes``."""

    routes = list(routes)
    logging_handler = LoggingHandler()
    error_handler = ErrorHandler()
    options_handler = OptionsHandler(routes)
    routing_handler = RoutingHandler(routes)
    head_handler = HeadHandler()
    dispatch_handler = DispatchHandler()

    logging_handler.set_next(error_handler)
    error_handler.set_next(options_handler)
    options_handler.set_next(routing_handler)
    routing_handler.set_next(head_handler)
    head_handler.set_next(dispatch_handler)

    return RequestProcessor(logging_handler)


__all__ = [
    "AbstractHandler",
    "DispatchHandler",
    "ErrorHandler",
    "HeadHandler",
    "LoggingHandler",
    "OptionsHandler",
    "RequestProcessor",
    "RoutingHandler",
    "build_processor",
    "html_error",
    "html_response",
    "not_found",
]
