"""HTTP client abstraction for the Azure DevOps and GitHub REST APIs.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
- basic_auth_header / bearer_auth_header: Authorization helpers
"""

from __future__ import annotations

import base64
import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from prtagger import __version__
from prtagger.core.result import Err, Ok, Result
from prtagger.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
    "basic_auth_header",
    "bearer_auth_header",
]

_DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for JSON-over-HTTP operations.

    Any non-2xx status is reported as Err(HttpError).
    """

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]: ...

    def post_json(
        self, url: str, payload: Mapping[str, object]
    ) -> Result[dict[str, Any], HttpError]: ...


def basic_auth_header(token: str) -> dict[str, str]:
    """Azure DevOps personal access tokens use basic auth with an empty user."""
    raw = base64.b64encode(f":{token}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {raw}"}


def bearer_auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - JSON encoding and decoding
    - Timeout handling
    """

    def __init__(
        self,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = f"prtagger/{__version__}",
    ) -> None:
        self.timeout = timeout
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/json",
            **(headers or {}),
        }
        self._ssl_context = ssl.create_default_context()

    def _request(
        self, url: str, *, method: str = "GET", body: bytes | None = None
    ) -> Result[bytes, HttpError]:
        headers = dict(self._headers)
        if body is not None:
            headers["Content-Type"] = "application/json"
        try:
            req = urllib.request.Request(url, data=body, headers=headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def _decode(self, url: str, raw: bytes) -> Result[dict[str, Any], HttpError]:
        if not raw.strip():
            return Ok({})
        try:
            data_obj: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

        data = as_str_dict(data_obj)
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        # Values are dynamic; preserve as Any for callers.
        return Ok(cast(dict[str, Any], data))

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        result = self._request(url)
        if isinstance(result, Err):
            return result
        return self._decode(url, result.value)

    def post_json(
        self, url: str, payload: Mapping[str, object]
    ) -> Result[dict[str, Any], HttpError]:
        body = json.dumps(payload).encode("utf-8")
        result = self._request(url, method="POST", body=body)
        if isinstance(result, Err):
            return result
        return self._decode(url, result.value)


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by exact URL. Unknown URLs answer 404.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.github.com/search/issues?q=x", {"total_count": 0})
        result = client.get_json("https://api.github.com/search/issues?q=x")
    """

    def __init__(self) -> None:
        self._get_responses: dict[str, dict[str, Any] | HttpError] = {}
        self._post_responses: dict[str, dict[str, Any] | HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.posted: list[tuple[str, dict[str, object]]] = []

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._get_responses[url] = response

    def set_post(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._post_responses[url] = response

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        self.calls.append(("GET", url))
        response = self._get_responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def post_json(
        self, url: str, payload: Mapping[str, object]
    ) -> Result[dict[str, Any], HttpError]:
        self.calls.append(("POST", url))
        self.posted.append((url, dict(payload)))
        response = self._post_responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
