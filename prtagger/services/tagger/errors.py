from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from prtagger.net.http import HttpError


TaggerErrorKind = Literal[
    "config_invalid",
    "http_failed",
    "invalid_payload",
    "git_failed",
    "unsupported_repo",
]


@dataclass(frozen=True, slots=True)
class TaggerError:
    kind: TaggerErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def http_failed(message: str, error: HttpError) -> TaggerError:
    return TaggerError(kind="http_failed", message=message, hint=str(error))
