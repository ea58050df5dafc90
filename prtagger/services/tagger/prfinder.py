"""Describe the pull requests merged between two component commits.

Merge commits ("Merge pull request #123 from user/branch") take their title
from the first body line; squash merges ("Fix the thing (#123)") from the
subject. Other first-parent commits are direct pushes and are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from prtagger.core.config import Product
from prtagger.core.result import Err, Ok, Result
from prtagger.git.repository import LogEntry, Repository
from prtagger.output.console import ConsoleProtocol
from prtagger.services.tagger.errors import TaggerError


_MERGE_RE = re.compile(r"^Merge pull request #(\d+) from (\S+)")
_SQUASH_RE = re.compile(r"^(.*\S)\s+\(#(\d+)\)$")


class DiffResolver(Protocol):
    def describe(
        self, product: Product, previous: str, current: str
    ) -> Result[str, TaggerError]: ...


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    title: str


def pull_request_for(entry: LogEntry) -> PullRequest | None:
    merge = _MERGE_RE.match(entry.subject)
    if merge is not None:
        body_lines = [line.strip() for line in entry.body.splitlines() if line.strip()]
        title = body_lines[0] if body_lines else merge.group(2)
        return PullRequest(number=int(merge.group(1)), title=title)

    squash = _SQUASH_RE.match(entry.subject)
    if squash is not None:
        return PullRequest(number=int(squash.group(2)), title=squash.group(1))
    return None


def format_description(
    repo_url: str, previous: str, current: str, prs: list[PullRequest]
) -> str:
    base = repo_url.rstrip("/").removesuffix(".git")
    lines = [f"[View Complete Diff of Changes]({base}/compare/{previous}...{current}?w=1)", ""]
    if not prs:
        lines.append("No pull requests found between these commits.")
    for pr in prs:
        lines.append(f"- [{pr.title}]({base}/pull/{pr.number})")
    return "\n".join(lines) + "\n"


class GitPrFinder:
    """DiffResolver backed by local clones under work_dir."""

    def __init__(self, *, work_dir: Path, console: ConsoleProtocol) -> None:
        self._work_dir = work_dir
        self._console = console
        self._ready: set[str] = set()

    def _repository(self, product: Product) -> Result[Repository, TaggerError]:
        repo = Repository(self._work_dir / product.repo_name)
        if product.repo_url in self._ready:
            return Ok(repo)

        if repo.exists():
            self._console.info(f"Updating {product.repo_slug} in {repo.path}")
        else:
            self._console.info(f"Cloning {product.repo_url} into {repo.path}")
        cloned = repo.ensure_clone(product.repo_url)
        if isinstance(cloned, Err):
            return Err(
                TaggerError(
                    kind="git_failed",
                    message=f"failed to prepare a clone of {product.repo_url}",
                    hint=cloned.error.message,
                )
            )
        self._ready.add(product.repo_url)
        return Ok(repo)

    def describe(self, product: Product, previous: str, current: str) -> Result[str, TaggerError]:
        repo = self._repository(product)
        if isinstance(repo, Err):
            return repo

        for sha in (previous, current):
            if not repo.value.has_commit(sha):
                return Err(
                    TaggerError(
                        kind="git_failed",
                        message=f"commit {sha} not found in {product.repo_slug}",
                    )
                )

        log = repo.value.first_parent_log(previous, current)
        if isinstance(log, Err):
            return Err(
                TaggerError(
                    kind="git_failed",
                    message=f"git log {previous}..{current} failed",
                    hint=log.error.message,
                )
            )

        prs = [pr for pr in (pull_request_for(e) for e in log.value) if pr is not None]
        self._console.info(f"{product.name}: {len(prs)} PR(s) between {previous} and {current}")
        return Ok(format_description(product.repo_url, previous, current, prs))
