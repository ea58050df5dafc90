"""Git working copies of component repositories.

Usage:
    repo = Repository(work_dir / "roslyn")
    match repo.ensure_clone("https://github.com/dotnet/roslyn"):
        case Ok(_):
            commits = repo.first_parent_log("abc123", "def456")
        case Err(e):
            print(f"Clone failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from prtagger.core.result import Err, Ok, Result
from prtagger.platform.process import ProcessError
from prtagger.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 15 * 60.0

# Fail instead of prompting for credentials.
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}

# Unit/record separators keep subjects and bodies with newlines intact.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

__all__ = [
    "GitError",
    "LogEntry",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class LogEntry:
    sha: str
    subject: str
    body: str


def _git_error(error: ProcessError) -> GitError:
    return GitError(
        command=" ".join(error.command),
        message=error.stderr.strip() or str(error),
        returncode=error.returncode,
    )


class Repository:
    """A local clone; operations return Result types."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    def _git(self, *args: str, timeout: float = _GIT_TIMEOUT_SECONDS) -> Result[str, GitError]:
        result = run_process(["git", *args], cwd=self.path, env=_GIT_ENV, timeout=timeout)
        if isinstance(result, Err):
            return Err(_git_error(result.error))
        return result

    def ensure_clone(self, url: str) -> Result[bool, GitError]:
        """Clone url into path, or fetch if it is already a clone.

        Returns:
            Ok(True) if a fresh clone was made, Ok(False) if fetched.
        """
        if self.exists():
            fetched = self._git("fetch", "--quiet", "origin", timeout=_GIT_NETWORK_TIMEOUT_SECONDS)
            if isinstance(fetched, Err):
                return fetched
            return Ok(False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(
                GitError(
                    command=f"git clone {url}",
                    message=f"cannot create {self.path.parent}: {e}",
                )
            )
        result = run_process(
            ["git", "clone", "--quiet", "--no-checkout", url, str(self.path)],
            cwd=self.path.parent,
            env=_GIT_ENV,
            timeout=_GIT_NETWORK_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(_git_error(result.error))
        return Ok(True)

    def has_commit(self, sha: str) -> bool:
        result = self._git("cat-file", "-e", f"{sha}^{{commit}}")
        return isinstance(result, Ok)

    def first_parent_log(self, base: str, head: str) -> Result[list[LogEntry], GitError]:
        """Commits reachable from head but not base along first parents, newest first."""
        fmt = f"%H{_FIELD_SEP}%s{_FIELD_SEP}%b{_RECORD_SEP}"
        result = self._git("log", "--first-parent", f"--format={fmt}", f"{base}..{head}")
        if isinstance(result, Err):
            return result

        entries: list[LogEntry] = []
        for record in result.value.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            parts = record.split(_FIELD_SEP)
            if len(parts) != 3:
                continue
            sha, subject, body = parts
            entries.append(LogEntry(sha=sha.strip(), subject=subject.strip(), body=body.strip()))
        return Ok(entries)
