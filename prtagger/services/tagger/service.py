from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from prtagger.core.config import Config, Product
from prtagger.core.errors import ErrorCode
from prtagger.core.result import Err, Ok, Result
from prtagger.net.http import RealHttpClient, basic_auth_header, bearer_auth_header
from prtagger.output.console import ConsoleProtocol, Style
from prtagger.services.tagger.azdo import AzdoConnection
from prtagger.services.tagger.correlator import ComponentBuildCorrelator
from prtagger.services.tagger.errors import TaggerError
from prtagger.services.tagger.history import UmbrellaHistory
from prtagger.services.tagger.ledger import GitHubLedger
from prtagger.services.tagger.manifest import UmbrellaManifests
from prtagger.services.tagger.model import (
    AlreadyNotified,
    Failed,
    NoChange,
    ProductReport,
    Succeeded,
)
from prtagger.services.tagger.prfinder import GitPrFinder
from prtagger.services.tagger.timeouts import HTTP_TIMEOUT_SECONDS
from prtagger.services.tagger.traversal import TraversalController


def select_products(config: Config, names: Sequence[str]) -> Result[list[Product], TaggerError]:
    if not names:
        return Ok(list(config.products))

    selected: list[Product] = []
    for name in names:
        product = config.product(name)
        if product is None:
            available = ", ".join(p.name for p in config.products)
            return Err(
                TaggerError(
                    kind="config_invalid",
                    message=f"unknown product: {name}",
                    hint=f"available: {available}",
                )
            )
        selected.append(product)
    return Ok(selected)


def build_controller(
    config: Config,
    *,
    console: ConsoleProtocol,
    work_dir: Path,
    max_builds: int,
    dry_run: bool = False,
    env: Mapping[str, str] | None = None,
) -> Result[TraversalController, TaggerError]:
    """Wire the real Azure DevOps, GitHub and git adapters from config."""
    environ = os.environ if env is None else env

    connections: list[AzdoConnection] = []
    for org in config.organizations:
        token = environ.get(org.token_env)
        if not token:
            console.warning(f"{org.token_env} is not set; {org.name} queries are anonymous")
        headers = basic_auth_header(token) if token else {}
        http = RealHttpClient(headers=headers, timeout=HTTP_TIMEOUT_SECONDS)
        connections.append(AzdoConnection(org, http))

    umbrella = next((c for c in connections if c.name == config.umbrella.organization), None)
    if umbrella is None:
        return Err(
            TaggerError(
                kind="config_invalid",
                message=f"umbrella organization {config.umbrella.organization} is not configured",
                hint="add it to [[organizations]]",
            )
        )

    gh_token = environ.get(config.github.token_env)
    if not gh_token and not dry_run:
        return Err(
            TaggerError(
                kind="config_invalid",
                message=f"{config.github.token_env} is required to create issues",
                hint="set it, or use --dry-run",
            )
        )
    gh_headers = {
        "Accept": "application/vnd.github+json",
        **(bearer_auth_header(gh_token) if gh_token else {}),
    }
    ledger = GitHubLedger(
        RealHttpClient(headers=gh_headers, timeout=HTTP_TIMEOUT_SECONDS),
        api_url=config.github.api_url,
    )

    correlator = ComponentBuildCorrelator(
        manifests=UmbrellaManifests(
            umbrella,
            repository=config.umbrella.repository,
            manifest_dir=config.umbrella.manifest_dir,
        ),
        lookups=connections,
        console=console,
    )
    history = UmbrellaHistory(
        umbrella,
        pipeline=config.umbrella.pipeline,
        repository=config.umbrella.repository,
        max_workers=config.run.max_workers,
    )

    return Ok(
        TraversalController(
            history=history,
            correlator=correlator,
            diff=GitPrFinder(work_dir=work_dir, console=console),
            ledger=ledger,
            console=console,
            max_builds=max_builds,
            dry_run=dry_run,
        )
    )


def print_summary(reports: Sequence[ProductReport], console: ConsoleProtocol) -> None:
    console.header("Summary")
    for report in reports:
        name = report.product.name
        if report.planned > report.created:
            line = f"{name}: would create {report.planned} notification(s)"
        else:
            line = f"{name}: created {report.created} notification(s)"

        last_build, last_outcome = report.last or ("", None)
        if report.error is not None:
            console.error(f"{line}; aborted: {report.error.pretty()}")
            continue

        match last_outcome:
            case Failed():
                where = f" at build {last_build}" if last_build else ""
                console.error(f"{line}; stopped{where}: {last_outcome.describe()}")
            case AlreadyNotified():
                console.success(f"{line}; reached already notified build {last_build}")
            case _:
                console.success(f"{line}; all fetched builds inspected")

        for build, outcome in report.outcomes:
            match outcome:
                case Succeeded(issue_url=url, dry_run=dry_run):
                    shown = "dry run" if dry_run else url or "created"
                    console.print(f"  {build}: {shown}", Style.DIM)
                case NoChange():
                    console.print(f"  {build}: no change", Style.DIM)
                case AlreadyNotified() | Failed():
                    pass


def exit_code(reports: Sequence[ProductReport]) -> ErrorCode:
    if any(r.stop_reason == "error" for r in reports):
        return ErrorCode.NETWORK_ERROR
    if any(r.stop_reason == "failed" for r in reports):
        return ErrorCode.TAG_ERROR
    return ErrorCode.OK
