"""Tests for prtagger.git.repository module."""

from __future__ import annotations

from pathlib import Path

import pytest

from prtagger.core.result import Err, Ok, Result
from prtagger.git.repository import LogEntry, Repository
from prtagger.platform.process import ProcessError


class Recorder:
    def __init__(self, result: Result[str, ProcessError]) -> None:
        self.result = result
        self.calls: list[tuple[list[str], Path]] = []

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        del env, timeout
        self.calls.append((cmd, cwd))
        return self.result


def test_exists(tmp_path: Path) -> None:
    repo = Repository(tmp_path / "roslyn")
    assert not repo.exists()
    (tmp_path / "roslyn" / ".git").mkdir(parents=True)
    assert repo.exists()


def test_ensure_clone_fresh(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    recorder = Recorder(Ok(""))
    monkeypatch.setattr("prtagger.git.repository.run_process", recorder)
    repo = Repository(tmp_path / "work" / "roslyn")

    assert repo.ensure_clone("https://github.com/dotnet/roslyn") == Ok(True)

    cmd, cwd = recorder.calls[0]
    assert cmd[:2] == ["git", "clone"]
    assert cmd[-2:] == ["https://github.com/dotnet/roslyn", str(tmp_path / "work" / "roslyn")]
    assert cwd == tmp_path / "work"
    assert cwd.is_dir()


def test_ensure_clone_fetches_existing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "roslyn" / ".git").mkdir(parents=True)
    recorder = Recorder(Ok(""))
    monkeypatch.setattr("prtagger.git.repository.run_process", recorder)

    assert Repository(tmp_path / "roslyn").ensure_clone("https://x") == Ok(False)
    assert recorder.calls[0][0] == ["git", "fetch", "--quiet", "origin"]


def test_ensure_clone_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    error = ProcessError(("git", "clone"), 128, "", "fatal: repository not found\n")
    monkeypatch.setattr("prtagger.git.repository.run_process", Recorder(Err(error)))

    result = Repository(tmp_path / "roslyn").ensure_clone("https://x")

    assert isinstance(result, Err)
    assert result.error.message == "fatal: repository not found"
    assert result.error.returncode == 128


def test_has_commit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    recorder = Recorder(Ok(""))
    monkeypatch.setattr("prtagger.git.repository.run_process", recorder)

    assert Repository(tmp_path).has_commit("abc")
    assert recorder.calls[0][0] == ["git", "cat-file", "-e", "abc^{commit}"]

    missing = ProcessError(("git",), 128, "", "fatal")
    monkeypatch.setattr("prtagger.git.repository.run_process", Recorder(Err(missing)))
    assert not Repository(tmp_path).has_commit("abc")


def test_first_parent_log_parses_multiline_bodies(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    out = (
        "c2\x1fMerge pull request #5 from a/b\x1fTitle line\n\nDetails\x1e\n"
        "c1\x1fFix (#4)\x1f\x1e\n"
    )
    recorder = Recorder(Ok(out))
    monkeypatch.setattr("prtagger.git.repository.run_process", recorder)

    result = Repository(tmp_path).first_parent_log("base", "head")

    assert result == Ok(
        [
            LogEntry(sha="c2", subject="Merge pull request #5 from a/b", body="Title line\n\nDetails"),
            LogEntry(sha="c1", subject="Fix (#4)", body=""),
        ]
    )
    cmd = recorder.calls[0][0]
    assert "--first-parent" in cmd
    assert cmd[-1] == "base..head"


def test_ensure_clone_unusable_work_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "file").write_text("", encoding="utf-8")
    recorder = Recorder(Ok(""))
    monkeypatch.setattr("prtagger.git.repository.run_process", recorder)

    result = Repository(tmp_path / "file" / "work" / "roslyn").ensure_clone("https://x")

    assert isinstance(result, Err)
    assert result.error.command == "git clone https://x"
    assert "cannot create" in result.error.message
    assert recorder.calls == []
