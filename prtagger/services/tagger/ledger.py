"""GitHub issues as the notification ledger.

The ledger is both where notifications are published and the idempotency
oracle: an issue with the deterministic title proves the build was handled.
Search results are trusted to be ranked newest first; nothing is re-sorted.
"""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote

from prtagger.core.result import Err, Ok, Result
from prtagger.core.structured import as_str_dict, get_int, get_list, get_str
from prtagger.net.http import HttpClient
from prtagger.services.tagger.errors import TaggerError, http_failed
from prtagger.services.tagger.titles import INSERTION_LABEL, build_number_from_title


class NotificationLedger(Protocol):
    def exists(self, repo: str, title: str) -> Result[bool, TaggerError]: ...

    def find_last_published_build_number(
        self, repo: str, label: str = INSERTION_LABEL
    ) -> Result[str | None, TaggerError]: ...

    def create(
        self, repo: str, title: str, body: str, label: str = INSERTION_LABEL
    ) -> Result[str | None, TaggerError]: ...


def search_query(
    repo: str, *, title: str | None = None, label: str | None = None
) -> str:
    terms: list[str] = []
    if title is not None:
        terms.append(f'"{title}" in:title')
    if label is not None:
        terms.append(f"label:{label}")
    terms.append("is:issue")
    terms.append(f"repo:{repo}")
    return " ".join(terms)


def _total_count(payload: dict[str, Any], query: str) -> Result[int, TaggerError]:
    # total_count is required by the search response schema.
    count = get_int(payload, "total_count")
    if count is None:
        return Err(
            TaggerError(
                kind="invalid_payload",
                message="search response without total_count",
                hint=query,
            )
        )
    return Ok(count)


class GitHubLedger:
    def __init__(self, http: HttpClient, *, api_url: str = "https://api.github.com") -> None:
        self._http = http
        self._api_url = api_url.rstrip("/")

    def search_url(self, query: str, *, newest_first: bool = False) -> str:
        url = f"{self._api_url}/search/issues?q={quote(query, safe='')}"
        if newest_first:
            url += "&sort=created&order=desc"
        return url

    def _search(
        self, query: str, *, newest_first: bool = False
    ) -> Result[dict[str, Any], TaggerError]:
        result = self._http.get_json(self.search_url(query, newest_first=newest_first))
        if isinstance(result, Err):
            return Err(http_failed("failed to search GitHub issues", result.error))
        return Ok(result.value)

    def exists(self, repo: str, title: str) -> Result[bool, TaggerError]:
        query = search_query(repo, title=title, label=INSERTION_LABEL)
        payload = self._search(query)
        if isinstance(payload, Err):
            return payload
        return _total_count(payload.value, query).map(lambda count: count != 0)

    def find_last_published_build_number(
        self, repo: str, label: str = INSERTION_LABEL
    ) -> Result[str | None, TaggerError]:
        """Build number in the title of the most recently created issue.

        A run creates issues newest build first, so this is the oldest build
        that run notified, not the newest notified build.
        """
        query = search_query(repo, label=label)
        payload = self._search(query, newest_first=True)
        if isinstance(payload, Err):
            return payload

        count = _total_count(payload.value, query)
        if isinstance(count, Err):
            return count
        if count.value == 0:
            return Ok(None)

        items = get_list(payload.value, "items") or []
        first = as_str_dict(items[0]) if items else None
        title = get_str(first, "title") if first is not None else None
        if title is None:
            return Err(
                TaggerError(
                    kind="invalid_payload",
                    message=f"search reported {count.value} issues but no title",
                    hint=query,
                )
            )
        return Ok(build_number_from_title(title))

    def create(
        self, repo: str, title: str, body: str, label: str = INSERTION_LABEL
    ) -> Result[str | None, TaggerError]:
        """Create the issue; returns its html_url when GitHub reports one."""
        url = f"{self._api_url}/repos/{repo}/issues"
        result = self._http.post_json(url, {"title": title, "body": body, "labels": [label]})
        if isinstance(result, Err):
            return Err(http_failed(f"failed to create issue in {repo}", result.error))
        return Ok(get_str(result.value, "html_url"))
