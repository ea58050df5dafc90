from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from prtagger.core.result import Err, Ok, Result
from prtagger.services.tagger.azdo import AzdoBuild, AzdoConnection
from prtagger.services.tagger.errors import TaggerError
from prtagger.services.tagger.model import UmbrellaBuildRecord


class BuildHistory(Protocol):
    def fetch(
        self, *, max_builds: int, watermark: str | None
    ) -> Result[list[UmbrellaBuildRecord], TaggerError]: ...


def ordered_map[T, U](fn: Callable[[T], U], items: Sequence[T], *, max_workers: int) -> list[U]:
    """Apply fn to every item concurrently; results keep the input order."""
    if not items:
        return []
    workers = max(1, min(max_workers, len(items)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(fn, item) for item in items]
        return [future.result() for future in futures]


def truncate_at_watermark(
    builds: Sequence[AzdoBuild], watermark: str | None
) -> list[AzdoBuild]:
    """Drop builds older than the watermark build.

    The watermark build itself is kept: reaching its existing notification is
    what proves the older history was covered.
    """
    out: list[AzdoBuild] = []
    for build in builds:
        out.append(build)
        if watermark is not None and build.build_number == watermark:
            break
    return out


class UmbrellaHistory:
    """Successful umbrella builds newest first, each paired with its parent commit."""

    def __init__(
        self,
        connection: AzdoConnection,
        *,
        pipeline: str,
        repository: str,
        max_workers: int,
    ) -> None:
        self._connection = connection
        self._pipeline = pipeline
        self._repository = repository
        self._max_workers = max_workers

    def fetch(
        self, *, max_builds: int, watermark: str | None
    ) -> Result[list[UmbrellaBuildRecord], TaggerError]:
        builds = self._connection.list_builds(
            self._pipeline, top=max_builds, result_filter="succeeded"
        )
        if isinstance(builds, Err):
            return builds

        selected = truncate_at_watermark(builds.value, watermark)

        def with_parent(build: AzdoBuild) -> Result[str, TaggerError]:
            return self._connection.first_parent(self._repository, build.source_version)

        parents = ordered_map(with_parent, selected, max_workers=self._max_workers)

        records: list[UmbrellaBuildRecord] = []
        for build, parent in zip(selected, parents):
            if isinstance(parent, Err):
                return parent
            records.append(
                UmbrellaBuildRecord(
                    build_number=build.build_number,
                    commit=build.source_version,
                    parent_commit=parent.value,
                )
            )
        return Ok(records)
