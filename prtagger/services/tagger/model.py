from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from prtagger.core.config import Product
from prtagger.services.tagger.errors import TaggerError


__all__ = [
    "AlreadyNotified",
    "ComponentResolution",
    "Failed",
    "FailureStage",
    "NoChange",
    "Product",
    "ProductReport",
    "ResolutionSide",
    "StopReason",
    "Succeeded",
    "TagOutcome",
    "UmbrellaBuildRecord",
    "is_terminal",
]


FailureStage = Literal["repo", "manifest", "build_lookup", "transport", "diff", "ledger"]
ResolutionSide = Literal["current", "previous"]
StopReason = Literal["exhausted", "already_notified", "failed", "error"]


@dataclass(frozen=True, slots=True)
class UmbrellaBuildRecord:
    """One successful umbrella (VS) build."""

    build_number: str
    commit: str
    parent_commit: str


@dataclass(frozen=True, slots=True)
class ComponentResolution:
    """Component build/commit matching one umbrella commit.

    A missing build number means the release manifest could not be read;
    a build number without a commit means no organization had that build.
    """

    build_number: str | None = None
    commit: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.commit is not None

    @property
    def failed_stage(self) -> FailureStage | None:
        if self.build_number is None:
            return "manifest"
        if self.commit is None:
            return "build_lookup"
        return None


@dataclass(frozen=True, slots=True)
class Succeeded:
    """Notification created (or would have been, on a dry run)."""

    title: str
    issue_url: str | None = None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class NoChange:
    """Component commit identical between the two umbrella builds."""

    commit: str


@dataclass(frozen=True, slots=True)
class AlreadyNotified:
    """A notification with this title exists; older builds are covered."""

    title: str


@dataclass(frozen=True, slots=True)
class Failed:
    stage: FailureStage
    message: str
    side: ResolutionSide | None = None

    def describe(self) -> str:
        where = self.stage.replace("_", " ")
        if self.side is not None:
            where = f"{where} ({self.side} build)"
        return f"{where}: {self.message}"


type TagOutcome = Succeeded | NoChange | AlreadyNotified | Failed


def is_terminal(outcome: TagOutcome) -> bool:
    """Whether the walk over older umbrella builds must stop after outcome."""
    match outcome:
        case Succeeded() | NoChange():
            return False
        case AlreadyNotified() | Failed():
            return True


@dataclass(frozen=True, slots=True)
class ProductReport:
    """What happened to one product during a run.

    Attributes:
        product: The product walked.
        outcomes: (umbrella build number, outcome) newest first.
        error: Hard error that aborted the walk before any build was tagged.
    """

    product: Product
    outcomes: tuple[tuple[str, TagOutcome], ...] = ()
    error: TaggerError | None = None

    @property
    def created(self) -> int:
        return sum(1 for _, o in self.outcomes if isinstance(o, Succeeded) and not o.dry_run)

    @property
    def planned(self) -> int:
        return sum(1 for _, o in self.outcomes if isinstance(o, Succeeded))

    @property
    def last(self) -> tuple[str, TagOutcome] | None:
        return self.outcomes[-1] if self.outcomes else None

    @property
    def stop_reason(self) -> StopReason:
        if self.error is not None:
            return "error"
        last = self.last
        if last is None:
            return "exhausted"
        match last[1]:
            case AlreadyNotified():
                return "already_notified"
            case Failed():
                return "failed"
            case Succeeded() | NoChange():
                return "exhausted"
