"""Walk umbrella builds newest to oldest and publish one issue per build.

Per product:

    Fetch    watermark = build of the most recently created issue; a run
                         files newest build first, so this is the oldest
                         build of the last run, a lower bound of coverage
             records   = umbrella builds, newest first, down to the watermark
    Iterate  for each record:
               resolve component commit at record.commit and at its parent
               unresolved             -> Failed           (stop)
               same component commit  -> NoChange         (continue)
               diff fails             -> Failed           (stop)
               issue title exists     -> AlreadyNotified  (stop)
               create issue           -> Succeeded        (continue)

NoChange must not stop the walk: an umbrella build can land without the
component moving. Only an existing issue proves this build and everything
older was handled by an earlier run. This assumes component history only
moves forward across umbrella builds; a revert can produce duplicate or
missing notifications.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from prtagger.core.config import Product
from prtagger.core.result import Err, Ok, Result
from prtagger.output.console import ConsoleProtocol
from prtagger.services.tagger.errors import TaggerError
from prtagger.services.tagger.history import BuildHistory
from prtagger.services.tagger.ledger import NotificationLedger
from prtagger.services.tagger.model import (
    AlreadyNotified,
    ComponentResolution,
    Failed,
    NoChange,
    ProductReport,
    ResolutionSide,
    Succeeded,
    TagOutcome,
    UmbrellaBuildRecord,
    is_terminal,
)
from prtagger.services.tagger.prfinder import DiffResolver
from prtagger.services.tagger.titles import INSERTION_LABEL, notification_title


class Correlator(Protocol):
    def resolve(
        self, product: Product, umbrella_commit: str
    ) -> Result[ComponentResolution, TaggerError]: ...


class TraversalController:
    def __init__(
        self,
        *,
        history: BuildHistory,
        correlator: Correlator,
        diff: DiffResolver,
        ledger: NotificationLedger,
        console: ConsoleProtocol,
        max_builds: int,
        dry_run: bool = False,
    ) -> None:
        self._history = history
        self._correlator = correlator
        self._diff = diff
        self._ledger = ledger
        self._console = console
        self._max_builds = max_builds
        self._dry_run = dry_run

    def run(self, products: Sequence[Product]) -> list[ProductReport]:
        """Walk every product in order; a failure in one never skips the others."""
        return [self.run_for_product(product) for product in products]

    def run_for_product(self, product: Product) -> ProductReport:
        self._console.header(product.name)

        if not product.is_github:
            failed = Failed(
                stage="repo", message=f"unsupported repository host: {product.repo_url}"
            )
            self._console.error(f"{product.name}: {failed.message}")
            return ProductReport(product=product, outcomes=(("", failed),))

        repo = product.repo_slug
        self._console.info(f"GitHub repo: {repo}")

        records = self._fetch(product)
        if isinstance(records, Err):
            self._console.error(f"{product.name}: {records.error.pretty()}")
            return ProductReport(product=product, error=records.error)

        outcomes: list[tuple[str, TagOutcome]] = []
        for record in records.value:
            outcome = self._tag(product, record)
            outcomes.append((record.build_number, outcome))
            if is_terminal(outcome):
                break

        return ProductReport(product=product, outcomes=tuple(outcomes))

    def _fetch(self, product: Product) -> Result[list[UmbrellaBuildRecord], TaggerError]:
        watermark = self._ledger.find_last_published_build_number(
            product.repo_slug, INSERTION_LABEL
        )
        if isinstance(watermark, Err):
            return watermark

        if watermark.value is None:
            self._console.info(f"No existing issue found in {product.repo_slug}")
        else:
            self._console.info(f"Last notified build: {watermark.value}")

        records = self._history.fetch(max_builds=self._max_builds, watermark=watermark.value)
        if isinstance(records, Ok):
            self._console.info(f"{len(records.value)} umbrella build(s) to inspect")
        return records

    def _resolve(
        self, product: Product, commit: str, side: ResolutionSide
    ) -> Result[str, Failed]:
        resolution = self._correlator.resolve(product, commit)
        if isinstance(resolution, Err):
            return Err(Failed(stage="transport", message=resolution.error.pretty(), side=side))

        stage = resolution.value.failed_stage
        if stage is not None or resolution.value.commit is None:
            return Err(
                Failed(
                    stage=stage or "build_lookup",
                    message=f"no {product.name} commit for umbrella commit {commit}",
                    side=side,
                )
            )
        return Ok(resolution.value.commit)

    def _tag(self, product: Product, record: UmbrellaBuildRecord) -> TagOutcome:
        self._console.info(f"Umbrella build {record.build_number} ({record.commit})")

        current = self._resolve(product, record.commit, "current")
        if isinstance(current, Err):
            return self._failed(record, current.error)
        previous = self._resolve(product, record.parent_commit, "previous")
        if isinstance(previous, Err):
            return self._failed(record, previous.error)

        if current.value == previous.value:
            self._console.info(
                f"No PRs to tag; {product.name} commit unchanged: {current.value}"
            )
            return NoChange(commit=current.value)

        self._console.info(
            f"Finding PRs between {product.name} commits {previous.value} and {current.value}"
        )
        description = self._diff.describe(product, previous.value, current.value)
        if isinstance(description, Err):
            return self._failed(record, Failed(stage="diff", message=description.error.pretty()))

        title = notification_title(record.build_number)
        exists = self._ledger.exists(product.repo_slug, title)
        if isinstance(exists, Err):
            return self._failed(record, Failed(stage="ledger", message=exists.error.pretty()))
        if exists.value:
            self._console.info(f"Issue '{title}' already exists in {product.repo_slug}; stopping")
            return AlreadyNotified(title=title)

        if self._dry_run:
            self._console.success(f"[dry-run] would create '{title}'")
            return Succeeded(title=title, dry_run=True)

        created = self._ledger.create(product.repo_slug, title, description.value, INSERTION_LABEL)
        if isinstance(created, Err):
            return self._failed(record, Failed(stage="ledger", message=created.error.pretty()))

        suffix = f": {created.value}" if created.value else ""
        self._console.success(f"Created '{title}'{suffix}")
        return Succeeded(title=title, issue_url=created.value)

    def _failed(self, record: UmbrellaBuildRecord, failed: Failed) -> Failed:
        self._console.error(f"Umbrella build {record.build_number}: {failed.describe()}")
        return failed
