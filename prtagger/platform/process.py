"""Run external tools (git) and capture their output as a Result.

    match run(["git", "cat-file", "-e", sha], cwd=clone_dir, env=GIT_ENV):
        case Ok(_):
            ...
        case Err(error):
            console.error(error.stderr)

env holds variables added on top of the current environment, not a
replacement for it.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from prtagger.core.result import Err, Ok, Result

__all__ = ["NEVER_RAN", "ProcessError", "run"]

NEVER_RAN = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited non-zero, timed out, or could not start.

    returncode is NEVER_RAN when no exit status exists.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        return f"{shown} failed (exit {self.returncode})"


def _environment(extra: Mapping[str, str] | None) -> dict[str, str] | None:
    if not extra:
        return None
    return {**os.environ, **extra}


def run(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run cmd in cwd; Ok(stdout) when it exits 0."""
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            command,
            cwd=cwd,
            env=_environment(env),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(ProcessError(command, NEVER_RAN, "", f"Command timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(command, NEVER_RAN, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(command, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)
