from __future__ import annotations

from pathlib import Path

import pytest

from worktask_mcp.git import FakeGitRunner, GitNotFoundError, GitResult, GitRunner, GitTimeoutError
from worktask_mcp.git.utils import sanitize_environment


def _script(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "git"
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    script.chmod(0o755)
    return script


def test_runner_executes_script(tmp_path: Path) -> None:
    runner = GitRunner(_script(tmp_path, "echo \"$@\""))

    result = runner.run(tmp_path, "status", "--porcelain")

    assert result.ok
    assert result.stdout.strip() == f"--no-pager -C {tmp_path} status --porcelain"


def test_runner_reports_non_zero_exit(tmp_path: Path) -> None:
    runner = GitRunner(_script(tmp_path, "echo 'fatal: not a repo' >&2\nexit 128"))

    result = runner.run(tmp_path, "status")

    assert not result.ok
    assert result.returncode == 128
    assert result.error_text == "fatal: not a repo"


def test_runner_times_out(tmp_path: Path) -> None:
    runner = GitRunner(_script(tmp_path, "sleep 5"), timeout=0.2)

    with pytest.raises(GitTimeoutError, match="timed out"):
        runner.run(tmp_path, "status")


def test_git_not_found(tmp_path: Path) -> None:
    with pytest.raises(GitNotFoundError):
        GitRunner(tmp_path / "missing")


def test_fake_runner_records_invocations() -> None:
    fake = FakeGitRunner([GitResult(args=("git",), returncode=0, stdout="ok", stderr="")])

    first = fake.run("/repo", "status")
    second = fake.run("/repo", "remote")

    assert first.stdout == "ok"
    assert second.stdout == ""
    assert fake.invocations == [("-C", "/repo", "status"), ("-C", "/repo", "remote")]


def test_fake_runner_raises_queued_exceptions() -> None:
    fake = FakeGitRunner([GitTimeoutError("slow")])

    with pytest.raises(GitTimeoutError):
        fake.run("/repo", "status")


def test_error_text_falls_back_to_exit_code() -> None:
    result = GitResult(args=("git",), returncode=3, stdout="", stderr="")

    assert result.error_text == "git exited with 3"


def test_sanitize_environment_strips_repository_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_DIR", "/elsewhere/.git")
    monkeypatch.setenv("GIT_WORK_TREE", "/elsewhere")

    env = sanitize_environment({"EXTRA": "1"})

    assert "GIT_DIR" not in env
    assert "GIT_WORK_TREE" not in env
    assert env["GIT_TERMINAL_PROMPT"] == "0"
    assert env["EXTRA"] == "1"
