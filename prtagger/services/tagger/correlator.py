"""Umbrella commit -> component build number -> component commit.

Organizations are tried in the configured priority order and the first one
that knows the build wins; results are never merged across organizations.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from prtagger.core.config import Product
from prtagger.core.result import Err, Ok, Result
from prtagger.output.console import ConsoleProtocol
from prtagger.services.tagger.errors import TaggerError
from prtagger.services.tagger.manifest import ManifestSource, build_number_from_url
from prtagger.services.tagger.model import ComponentResolution


class BuildLookup(Protocol):
    """One organization able to answer "which commit produced build N"."""

    @property
    def name(self) -> str: ...

    def find_build(self, pipeline: str, build_number: str) -> Result[str | None, TaggerError]: ...


class ComponentBuildCorrelator:
    def __init__(
        self,
        *,
        manifests: ManifestSource,
        lookups: Sequence[BuildLookup],
        console: ConsoleProtocol,
    ) -> None:
        self._manifests = manifests
        self._lookups = tuple(lookups)
        self._console = console

    def build_number(
        self, product: Product, umbrella_commit: str
    ) -> Result[str | None, TaggerError]:
        url = self._manifests.component_url(
            umbrella_commit, product.component_json, product.component
        )
        if isinstance(url, Err):
            return url
        if url.value is None:
            self._console.error(
                f"{product.name}: no {product.component} entry in "
                f"{product.component_json} at {umbrella_commit}"
            )
            return Ok(None)

        build_number = build_number_from_url(url.value)
        if build_number is None:
            self._console.error(f"{product.name}: no build number in manifest URL {url.value}")
            return Ok(None)

        self._console.info(f"{product.name}: build {build_number} at {umbrella_commit}")
        return Ok(build_number)

    def commit_for_build(
        self, product: Product, build_number: str
    ) -> Result[str | None, TaggerError]:
        for lookup in self._lookups:
            pipeline = product.build_pipeline_name(lookup.name)
            if pipeline is None:
                continue

            commit = lookup.find_build(pipeline, build_number)
            if isinstance(commit, Err):
                return commit
            if commit.value is not None:
                self._console.info(
                    f"{product.name}: build {build_number} of {lookup.name}/{pipeline} "
                    f"is {commit.value}"
                )
                return commit

        self._console.error(f"{product.name}: build {build_number} not found in any organization")
        return Ok(None)

    def resolve(
        self, product: Product, umbrella_commit: str
    ) -> Result[ComponentResolution, TaggerError]:
        build_number = self.build_number(product, umbrella_commit)
        if isinstance(build_number, Err):
            return build_number
        if build_number.value is None:
            return Ok(ComponentResolution())

        commit = self.commit_for_build(product, build_number.value)
        if isinstance(commit, Err):
            return commit
        return Ok(ComponentResolution(build_number=build_number.value, commit=commit.value))
