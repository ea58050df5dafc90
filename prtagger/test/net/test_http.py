"""Tests for net/http.py - HTTP client abstraction."""

from __future__ import annotations

import base64
import io
import json
import urllib.error
import urllib.request
from typing import Any

import pytest

from prtagger.core.result import Err, Ok
from prtagger.net.http import (
    HttpClient,
    HttpError,
    MockHttpClient,
    RealHttpClient,
    basic_auth_header,
    bearer_auth_header,
)


class TestHttpError:
    def test_str_with_status(self) -> None:
        error = HttpError(url="https://api.github.com/x", status=403, message="Forbidden")
        assert str(error) == "HTTP 403: Forbidden (https://api.github.com/x)"

    def test_str_without_status(self) -> None:
        error = HttpError(url="https://dev.azure.com", status=0, message="Request timed out")
        assert str(error) == "Request timed out (https://dev.azure.com)"


class TestAuthHeaders:
    def test_basic_uses_empty_user(self) -> None:
        header = basic_auth_header("pat")["Authorization"]
        assert header.startswith("Basic ")
        assert base64.b64decode(header.removeprefix("Basic ")) == b":pat"

    def test_bearer(self) -> None:
        assert bearer_auth_header("tok") == {"Authorization": "Bearer tok"}


class TestMockHttpClient:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)

    def test_known_and_unknown_urls(self) -> None:
        client = MockHttpClient()
        client.set_json("https://a/1", {"ok": True})

        assert client.get_json("https://a/1") == Ok({"ok": True})
        missing = client.get_json("https://a/2")
        assert isinstance(missing, Err)
        assert missing.error.status == 404
        assert client.calls == [("GET", "https://a/1"), ("GET", "https://a/2")]

    def test_post_records_payload(self) -> None:
        client = MockHttpClient()
        client.set_post("https://a/issues", {"id": 1})

        assert client.post_json("https://a/issues", {"title": "t"}) == Ok({"id": 1})
        assert client.posted == [("https://a/issues", {"title": "t"})]


class _FakeResponse(io.BytesIO):
    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class TestRealHttpClient:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(RealHttpClient(), HttpClient)

    def test_get_json_sends_headers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[urllib.request.Request] = []

        def fake_urlopen(req: urllib.request.Request, **_: Any) -> _FakeResponse:
            seen.append(req)
            return _FakeResponse(b'{"value": []}')

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
        client = RealHttpClient(headers=bearer_auth_header("tok"), user_agent="test-agent")

        assert client.get_json("https://api.github.com/x") == Ok({"value": []})
        assert seen[0].get_header("Authorization") == "Bearer tok"
        assert seen[0].get_header("User-agent") == "test-agent"

    def test_post_json_encodes_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[urllib.request.Request] = []

        def fake_urlopen(req: urllib.request.Request, **_: Any) -> _FakeResponse:
            seen.append(req)
            return _FakeResponse(b'{"html_url": "u"}')

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        result = RealHttpClient().post_json("https://api.github.com/x", {"title": "t"})

        assert result == Ok({"html_url": "u"})
        assert seen[0].get_method() == "POST"
        assert seen[0].data is not None
        assert json.loads(seen[0].data) == {"title": "t"}  # type: ignore[arg-type]
        assert seen[0].get_header("Content-type") == "application/json"

    def test_http_error_status(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req: urllib.request.Request, **_: Any) -> _FakeResponse:
            raise urllib.error.HTTPError(req.full_url, 401, "Unauthorized", {}, None)  # type: ignore[arg-type]

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        result = RealHttpClient().get_json("https://dev.azure.com/x")
        assert isinstance(result, Err)
        assert result.error.status == 401

    def test_network_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req: urllib.request.Request, **_: Any) -> _FakeResponse:
            raise urllib.error.URLError("no route")

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        result = RealHttpClient().get_json("https://dev.azure.com/x")
        assert isinstance(result, Err)
        assert result.error.status == 0
        assert result.error.message == "no route"

    def test_non_object_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(urllib.request, "urlopen", lambda req, **_: _FakeResponse(b"[1]"))

        result = RealHttpClient().get_json("https://api.github.com/x")
        assert isinstance(result, Err)
        assert result.error.message == "Expected JSON object"

    def test_empty_body_is_empty_object(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(urllib.request, "urlopen", lambda req, **_: _FakeResponse(b""))

        assert RealHttpClient().get_json("https://api.github.com/x") == Ok({})
