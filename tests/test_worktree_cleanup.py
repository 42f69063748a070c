from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from conftest import commit_file, run_git
from worktask_mcp.config import WorktaskSettings
from worktask_mcp.git import FakeGitRunner, GitResult, GitTimeoutError
from worktask_mcp.worktrees import CleanupResult, cleanup_worktree


def _settings(base: Path) -> WorktaskSettings:
    return WorktaskSettings(base_dir=base)


def _safe_responses() -> list[GitResult]:
    return [
        GitResult(args=(), returncode=0, stdout="", stderr=""),
        GitResult(args=(), returncode=0, stdout="origin\n", stderr=""),
        GitResult(args=(), returncode=0, stdout="origin/feature\n", stderr=""),
        GitResult(args=(), returncode=0, stdout="0\n", stderr=""),
    ]


def test_safe_worktree_is_removed(git_repo: Path, worktree: Path, remote_repo: Path) -> None:
    commit_file(worktree, "feature.txt")
    run_git(worktree, "push", "-q", "-u", "origin", "feature")

    result = cleanup_worktree(git_repo, worktree, _settings(git_repo))

    assert result.success is True
    assert result.message == f"Worktree removed at {worktree}"
    assert result.error is None
    assert not worktree.exists()
    assert str(worktree) not in run_git(git_repo, "worktree", "list")


def test_dirty_worktree_is_left_untouched(git_repo: Path, worktree: Path, remote_repo: Path) -> None:
    scratch = worktree / "scratch.txt"
    scratch.write_text("draft\n", encoding="utf-8")

    result = cleanup_worktree(git_repo, worktree, _settings(git_repo))

    assert result.success is False
    assert result.message is None
    assert result.error.startswith("Cannot remove worktree: ")
    assert "Uncommitted" in result.error
    assert scratch.read_text(encoding="utf-8") == "draft\n"


def test_worktree_without_remote_is_left_untouched(git_repo: Path, worktree: Path) -> None:
    commit_file(worktree, "feature.txt")

    result = cleanup_worktree(git_repo, worktree, _settings(git_repo))

    assert result.success is False
    assert "remote" in result.error.lower()
    assert (worktree / "feature.txt").exists()


def test_unpushed_worktree_is_left_untouched(git_repo: Path, worktree: Path, remote_repo: Path) -> None:
    commit_file(worktree, "feature.txt")

    result = cleanup_worktree(git_repo, worktree, _settings(git_repo))

    assert result.success is False
    assert result.error.startswith("Cannot remove worktree: Unpushed commits exist")
    assert (worktree / "feature.txt").exists()
    assert "feature" in run_git(git_repo, "worktree", "list")


def test_removal_failure_after_safe_verdict_is_reported(tmp_path: Path) -> None:
    fake = FakeGitRunner(
        _safe_responses()
        + [GitResult(args=(), returncode=128, stdout="", stderr="fatal: contains modified files")]
    )

    result = cleanup_worktree("/work/proj", "/work/proj-feature", _settings(tmp_path), git=fake)

    assert result.success is False
    assert result.error == "Failed to remove worktree: fatal: contains modified files"
    assert "--force" not in fake.invocations[-1]


def test_removal_timeout_is_reported(tmp_path: Path) -> None:
    fake = FakeGitRunner(_safe_responses() + [GitTimeoutError("git worktree remove timed out")])

    result = cleanup_worktree("/work/proj", "/work/proj-feature", _settings(tmp_path), git=fake)

    assert result.success is False
    assert result.error.startswith("Failed to remove worktree: ")
    assert "timed out" in result.error


@pytest.mark.parametrize("repo_root, worktree_path", [("", "/wt"), ("/repo", ""), ("/repo", "  ")])
def test_blank_paths_are_rejected(tmp_path: Path, repo_root: str, worktree_path: str) -> None:
    with pytest.raises(ValueError):
        cleanup_worktree(repo_root, worktree_path, _settings(tmp_path), git=FakeGitRunner())


def test_cleanup_result_requires_exactly_one_outcome() -> None:
    with pytest.raises(ValidationError):
        CleanupResult(success=True)
    with pytest.raises(ValidationError):
        CleanupResult(success=False, message="done", error="failed")
    with pytest.raises(ValidationError):
        CleanupResult(success=False)
