"""Azure DevOps REST queries used to correlate builds and commits.

One AzdoConnection per organization. The connection is also a BuildLookup
strategy for the correlator (see correlator.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from prtagger.core.config import OrganizationConfig
from prtagger.core.result import Err, Ok, Result
from prtagger.core.structured import as_obj_list, as_str_dict, get_int, get_list, get_str
from prtagger.net.http import HttpClient
from prtagger.services.tagger.errors import TaggerError, http_failed

API_VERSION = "7.1"


@dataclass(frozen=True, slots=True)
class AzdoBuild:
    build_number: str
    source_version: str


class AzdoConnection:
    def __init__(self, org: OrganizationConfig, http: HttpClient) -> None:
        self.org = org
        self._http = http

    @property
    def name(self) -> str:
        return self.org.name

    def _url(self, path: str, params: dict[str, str | int]) -> str:
        query = urlencode({**params, "api-version": API_VERSION}, safe="$/.")
        return f"{self.org.url}/{quote(self.org.project)}/_apis/{path}?{query}"

    def _get(self, url: str, what: str) -> Result[dict[str, Any], TaggerError]:
        result = self._http.get_json(url)
        if isinstance(result, Err):
            return Err(http_failed(f"{self.name}: failed to query {what}", result.error))
        return Ok(result.value)

    def definition_id(self, pipeline: str) -> Result[int | None, TaggerError]:
        url = self._url("build/definitions", {"name": pipeline})
        obj = self._get(url, f"pipeline {pipeline}")
        if isinstance(obj, Err):
            return obj

        for item in get_list(obj.value, "value") or []:
            d = as_str_dict(item)
            if d is None:
                continue
            def_id = get_int(d, "id")
            if def_id is not None:
                return Ok(def_id)
        return Ok(None)

    def list_builds(
        self,
        pipeline: str,
        *,
        top: int | None = None,
        build_number: str | None = None,
        result_filter: str | None = None,
    ) -> Result[list[AzdoBuild], TaggerError]:
        """Builds of pipeline, most recently finished first.

        result_filter restricts the build result ("succeeded"); None keeps
        every result. An unknown pipeline yields an empty list.
        """
        def_id = self.definition_id(pipeline)
        if isinstance(def_id, Err):
            return def_id
        if def_id.value is None:
            return Ok([])

        params: dict[str, str | int] = {
            "definitions": def_id.value,
            "queryOrder": "finishTimeDescending",
        }
        if result_filter is not None:
            params["resultFilter"] = result_filter
        if top is not None:
            params["$top"] = top
        if build_number is not None:
            params["buildNumber"] = build_number

        obj = self._get(self._url("build/builds", params), f"builds of {pipeline}")
        if isinstance(obj, Err):
            return obj

        raw = get_list(obj.value, "value")
        if raw is None:
            return Err(
                TaggerError(
                    kind="invalid_payload",
                    message=f"{self.name}: unexpected builds payload for {pipeline}",
                )
            )

        out: list[AzdoBuild] = []
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            number = get_str(d, "buildNumber")
            source = get_str(d, "sourceVersion")
            if number is None or source is None:
                continue
            out.append(AzdoBuild(build_number=number, source_version=source))
        return Ok(out)

    def find_build(self, pipeline: str, build_number: str) -> Result[str | None, TaggerError]:
        """Source commit of build_number in pipeline, or None if it isn't there.

        Any build result counts: a partially succeeded build can still be
        the one inserted into the umbrella.
        """
        builds = self.list_builds(pipeline, build_number=build_number)
        if isinstance(builds, Err):
            return builds
        for build in builds.value:
            if build.build_number == build_number:
                return Ok(build.source_version)
        return Ok(None)

    def first_parent(self, repository: str, commit: str) -> Result[str, TaggerError]:
        url = self._url(f"git/repositories/{quote(repository)}/commits/{commit}", {})
        obj = self._get(url, f"commit {commit}")
        if isinstance(obj, Err):
            return obj

        parents = as_obj_list(obj.value.get("parents"))
        if not parents or not isinstance(parents[0], str):
            return Err(
                TaggerError(
                    kind="invalid_payload",
                    message=f"{self.name}: commit {commit} has no parent",
                )
            )
        return Ok(parents[0])

    def get_file_text(
        self, repository: str, path: str, commit: str
    ) -> Result[str | None, TaggerError]:
        """Content of path at commit; None when the file doesn't exist there."""
        url = self._url(
            f"git/repositories/{quote(repository)}/items",
            {
                "path": path,
                "versionDescriptor.version": commit,
                "versionDescriptor.versionType": "commit",
                "includeContent": "true",
            },
        )
        result = self._http.get_json(url)
        if isinstance(result, Err):
            if result.error.status == 404:
                return Ok(None)
            return Err(http_failed(f"{self.name}: failed to read {path}@{commit}", result.error))

        content = result.value.get("content")
        if not isinstance(content, str):
            return Ok(None)
        return Ok(content)
