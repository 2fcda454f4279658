from __future__ import annotations

import logging
import re

import pytest

from libs.python.http_core import HttpRequest
from libs.python.served_by import build_served_by_handler, render_served_by
from services.coffee.app.handlers import build_handler as build_coffee_handler
from services.tea.app.handlers import build_handler as build_tea_handler

SERVICES = [
    pytest.param("coffee", build_coffee_handler, id="coffee"),
    pytest.param("tea", build_tea_handler, id="tea"),
]


def _make_request(method: str, target: str) -> HttpRequest:
    return HttpRequest(
        method=method,
        target=target,
        path=target,
        query="",
        headers={},
        body=b"",
        client=("127.0.0.1", 0),
    )


@pytest.mark.parametrize("drink, build_handler", SERVICES)
def test_route_reports_hostname(drink, build_handler) -> None:
    processor = build_handler(lambda: "myhost")

    response = processor.handle(_make_request("GET", f"/{drink}"))

    assert response.status == 200
    assert response.headers["Content-Type"].startswith("text/html")
    assert response.body.decode() == f"<h3>Your {drink} has been served by myhost</h3>"
    assert response.headers["Content-Length"] == str(len(response.body))


@pytest.mark.parametrize("drink, build_handler", SERVICES)
def test_unknown_path_is_not_found(drink, build_handler) -> None:
    processor = build_handler(lambda: "myhost")

    response = processor.handle(_make_request("GET", "/latte"))

    assert response.status == 404
    assert response.body.decode() == "<pre>Cannot GET /latte</pre>"


@pytest.mark.parametrize("drink, build_handler", SERVICES)
def test_post_to_route_is_not_found(drink, build_handler) -> None:
    processor = build_handler(lambda: "myhost")

    response = processor.handle(_make_request("POST", f"/{drink}"))

    assert response.status == 404
    assert response.body.decode() == f"<pre>Cannot POST /{drink}</pre>"


def test_services_do_not_share_routes() -> None:
    coffee = build_coffee_handler(lambda: "myhost")
    tea = build_tea_handler(lambda: "myhost")

    assert coffee.handle(_make_request("GET", "/tea")).status == 404
    assert tea.handle(_make_request("GET", "/coffee")).status == 404


def test_route_matching_is_not_strict() -> None:
    processor = build_coffee_handler(lambda: "myhost")

    assert processor.handle(_make_request("GET", "/coffee/")).status == 200
    assert processor.handle(_make_request("GET", "/Coffee")).status == 200
    assert processor.handle(_make_request("GET", "/coffee/extra")).status == 404


def test_hostname_is_resolved_per_request() -> None:
    names = iter(["first", "second"])
    processor = build_coffee_handler(lambda: next(names))

    first = processor.handle(_make_request("GET", "/coffee")).body.decode()
    second = processor.handle(_make_request("GET", "/coffee")).body.decode()

    assert first.endswith("by first</h3>")
    assert second.endswith("by second</h3>")


def test_hostname_is_not_escaped() -> None:
    processor = build_served_by_handler("tea", lambda: "<b>box</b>&co")

    response = processor.handle(_make_request("GET", "/tea"))

    assert response.body.decode() == "<h3>Your tea has been served by <b>box</b>&co</h3>"


def test_not_found_body_escapes_path() -> None:
    processor = build_coffee_handler(lambda: "myhost")

    response = processor.handle(_make_request("GET", "/<script>"))

    assert response.status == 404
    assert b"<script>" not in response.body
    assert b"&lt;script&gt;" in response.body


def test_resolver_failure_returns_500_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    def broken() -> str:
        raise OSError("name service unavailable")

    processor = build_coffee_handler(broken)

    with caplog.at_level(logging.ERROR, logger="http_core.chain"):
        response = processor.handle(_make_request("GET", "/coffee"))

    assert response.status == 500
    assert response.headers["Content-Type"].startswith("text/html")
    errors = [r for r in caplog.records if r.name == "http_core.chain"]
    assert errors and errors[0].exc_info is not None
    assert "name service unavailable" in caplog.text


def test_options_lists_allowed_methods() -> None:
    processor = build_tea_handler(lambda: "myhost")

    response = processor.handle(_make_request("OPTIONS", "/tea"))

    assert response.status == 200
    assert response.headers["Allow"] == "GET,HEAD"
    assert response.body == b"GET,HEAD"
    assert processor.handle(_make_request("OPTIONS", "/latte")).status == 404


def test_access_log_entry(caplog: pytest.LogCaptureFixture) -> None:
    processor = build_tea_handler(lambda: "myhost")

    with caplog.at_level(logging.INFO, logger="http_core.access"):
        processor.handle(_make_request("GET", "/tea"))

    entries = [r.getMessage() for r in caplog.records if r.name == "http_core.access"]
    assert len(entries) == 1
    assert re.search(r'"method":"GET","path":"/tea","status":200', entries[0])


def test_render_served_by() -> None:
    assert render_served_by("coffee", "myhost") == "<h3>Your coffee has been served by myhost</h3>"
