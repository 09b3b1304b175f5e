"""Tests for the shared HTTP client."""

import httpx
import pytest

from radar.core.errors import FetchError
from radar.services.http import HttpService


def _service(handler) -> HttpService:
    client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)
    return HttpService(timeout=2.0, user_agent="radar-tests", client=client)


def test_sends_user_agent_and_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers["user-agent"]
        return httpx.Response(200, text="<rss/>", headers={"content-type": "Application/RSS+XML"})

    text, content_type = _service(handler).fetch_text("https://example.com/feed")

    assert text == "<rss/>"
    assert content_type == "application/rss+xml"
    assert seen["user_agent"] == "radar-tests"


def test_non_2xx_becomes_fetch_error():
    service = _service(lambda request: httpx.Response(503, text="busy"))

    with pytest.raises(FetchError) as exc_info:
        service.fetch("https://example.com/feed")

    assert exc_info.value.status_code == 503
    assert "HTTP 503" in str(exc_info.value)


def test_timeout_becomes_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(FetchError, match="Timed out after 2.0s"):
        _service(handler).fetch("https://example.com/feed")


def test_invalid_json_becomes_fetch_error():
    service = _service(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(FetchError, match="Invalid JSON"):
        service.fetch_json("https://gamma-api.polymarket.com/events")


def test_query_params_are_sent():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"limit": request.url.params["limit"]})

    payload = _service(handler).fetch_json("https://api.example.com/events", params={"limit": 5})

    assert payload == {"limit": "5"}


def test_url_rejected_by_httpx_becomes_fetch_error():
    calls = []
    service = _service(lambda request: calls.append(request) or httpx.Response(200))

    with pytest.raises(FetchError, match="Invalid URL"):
        service.fetch("https://example.com/\x07feed")

    assert calls == []
