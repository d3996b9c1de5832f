"""Tests for the outbound HTTP client used by webhook steps."""

import json

import httpx
import pytest

from integrations.http_egress import HttpEgress


def _egress(handler):
    return HttpEgress(timeout=5.0, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestHttpEgress:

    async def test_post_json_and_parse_response(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": 1})

        result = await _egress(handler).request(
            "https://api.example.com/hook", json_body={"a": 1}
        )

        assert result == {"id": 1}
        assert seen[0].method == "POST"
        assert seen[0].headers["content-type"] == "application/json"
        assert json.loads(seen[0].content) == {"a": 1}

    async def test_caller_headers_override_defaults(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        await _egress(handler).request(
            "https://api.example.com/hook",
            method="put",
            headers={"Content-Type": "application/vnd.api+json", "X-Key": "k"},
        )

        assert seen[0].method == "PUT"
        assert seen[0].headers["content-type"] == "application/vnd.api+json"
        assert seen[0].headers["x-key"] == "k"
        assert seen[0].content == b""

    async def test_error_status_raises(self):
        egress = _egress(lambda request: httpx.Response(404, json={"error": "nope"}))
        with pytest.raises(httpx.HTTPStatusError):
            await egress.request("https://api.example.com/hook")

    async def test_non_json_response_raises(self):
        egress = _egress(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ValueError):
            await egress.request("https://api.example.com/hook")
