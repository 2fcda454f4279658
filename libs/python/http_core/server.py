from __future__ import annotations

"""Manual HTTP/1.1 server implemented directly over sockets."""

import logging
import socket
import threading
import time
from http import HTTPStatus
from typing import Dict, Optional, Protocol, Tuple
from urllib.parse import urlsplit

from .chain import html_error
from .errors import BindError
from .http import HttpRequest, HttpResponse

MAX_HEADER_BYTES = 16 * 1024
MAX_BODY_BYTES = 5 * 1024 * 1024
CONNECTION_TIMEOUT = 30
ACCEPT_POLL_INTERVAL = 0.2
ACCEPT_RETRY_DELAY = 0.1

logger = logging.getLogger("http_core.server")


class RequestHandler(Protocol):
    def handle(self, request: HttpRequest) -> HttpResponse:
        """Process ``request`` and return an HTTP response."""


def bind_listener(port: int, host: str = "0.0.0.0") -> socket.socket:
    """Return a listening TCP socket or raise :class:`BindError`."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(128)
    except OSError as exc:
        sock.close()
        raise BindError(host, port, exc) from exc
    return sock


def run_server(
    handler: RequestHandler,
    port: int,
    host: str = "0.0.0.0",
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Start a blocking TCP server that delegates to ``handler``."""

    with bind_listener(port, host) as sock:
        logger.info("Server started on port %s", sock.getsockname()[1])
        try:
            serve_forever(sock, handler, stop_event)
        except KeyboardInterrupt:
            logger.info("Interrupted, closing listener on %s:%s", host, port)


def serve_forever(
    sock: socket.socket,
    handler: RequestHandler,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Accept connections on ``sock`` until ``stop_event`` is set, if ever."""

    if stop_event is not None:
        sock.settimeout(ACCEPT_POLL_INTERVAL)
    while stop_event is None or not stop_event.is_set():
        try:
            conn, addr = sock.accept()
        except socket.timeout:
            continue
        except OSError as exc:
            logger.warning("accept failed: %s", exc)
            time.sleep(ACCEPT_RETRY_DELAY)
            continue
        thread = threading.Thread(target=_serve_connection, args=(conn, addr, handler), daemon=True)
        thread.start()


def _serve_connection(conn: socket.socket, addr: Tuple[str, int], handler: RequestHandler) -> None:
    with conn:
        conn.settimeout(CONNECTION_TIMEOUT)
        try:
            request = _read_request(conn, addr)
        except ValueError as exc:
            _reply(conn, addr, html_error(HTTPStatus.BAD_REQUEST, str(exc)))
            return
        except OSError as exc:
            logger.debug("dropping connection from %s:%s: %s", addr[0], addr[1], exc)
            return
        if request is None:
            return

        try:
            response = handler.handle(request)
        except Exception:  # noqa: BLE001
            logger.exception("unhandled error serving %s %s", request.method, request.path)
            response = html_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

        _reply(conn, addr, response, include_body=request.method != "HEAD")


def _reply(conn: socket.socket, addr: Tuple[str, int], response: HttpResponse, include_body: bool = True) -> None:
    try:
        _write_response(conn, response, include_body)
    except OSError as exc:
        logger.warning("client %s:%s went away: %s", addr[0], addr[1], exc)


def _read_request(conn: socket.socket, addr: Tuple[str, int]) -> HttpRequest | None:
    received = _recv_head(conn)
    if received is None:
        return None
    head, rest = received
    method, target, headers = _parse_head(head)
    body = _recv_body(conn, rest, _content_length(headers))
    parsed = urlsplit(target)
    return HttpRequest(
        method=method,
        target=target,
        path=parsed.path or "/",
        query=parsed.query,
        headers=headers,
        body=body,
        client=addr,
    )


def _recv_head(conn: socket.socket) -> Tuple[bytes, bytes] | None:
    buffer = bytearray()
    while b"\r\n\r\n" not in buffer:
        chunk = conn.recv(4096)
        if not chunk:
            return None
        buffer.extend(chunk)
        if len(buffer) > MAX_HEADER_BYTES:
            raise ValueError("header section too large")
    head, rest = bytes(buffer).split(b"\r\n\r\n", 1)
    return head, rest


def _parse_head(head: bytes) -> Tuple[str, str, Dict[str, str]]:
    request_line, *header_lines = head.split(b"\r\n")
    parts = request_line.decode("iso-8859-1").split()
    if len(parts) != 3:
        raise ValueError("invalid request line")
    method, target, version = parts
    if version not in {"HTTP/1.1", "HTTP/1.0"}:
        raise ValueError("unsupported HTTP version")

    headers: Dict[str, str] = {}
    for line in filter(None, header_lines):
        name, sep, value = line.partition(b":")
        if not sep:
            raise ValueError("invalid header")
        headers[name.decode("ascii", "ignore").strip().lower()] = value.decode("iso-8859-1").strip()
    return method.upper(), target, headers


def _content_length(headers: Dict[str, str]) -> int:
    raw = headers.get("content-length") or "0"
    if not raw.isdigit():
        raise ValueError("invalid content-length")
    length = int(raw)
    return min(length, MAX_BODY_BYTES)


def _recv_body(conn: socket.socket, already: bytes, length: int) -> bytes:
    body = bytearray(already[:length])
    while len(body) < length:
        chunk = conn.recv(min(65536, length - len(body)))
        if not chunk:
            break
        body.extend(chunk)
    return bytes(body)


def _write_response(conn: socket.socket, response: HttpResponse, include_body: bool = True) -> None:
    response.headers.setdefault("Connection", "close")
    response.ensure_content_length()
    try:
        reason = HTTPStatus(response.status).phrase
    except ValueError:
        reason = "Unknown"
    lines = [f"HTTP/1.1 {int(response.status)} {reason}"]
    lines.extend(f"{name.title()}: {value}" for name, value in response.headers.items())
    conn.sendall(("\r\n".join(lines) + "\r\n\r\n").encode("iso-8859-1"))
    if include_body and response.body:
        conn.sendall(response.body)
