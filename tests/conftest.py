from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Iterable

import pytest


def run_git(cwd: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout


def commit_file(repo: Path, name: str, content: str = "content\n", message: str | None = None) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    run_git(repo, "add", name)
    run_git(repo, "commit", "-q", "-m", message or f"add {name}")


def write_jsonl(path: Path, records: Iterable[dict[str, Any]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(record) + "\n" for record in records), encoding="utf-8")
    return path


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A main checkout on ``main`` with a single commit, at ``<tmp>/proj``."""

    repo = tmp_path / "proj"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(repo, "config", "user.email", "dev@example.com")
    run_git(repo, "config", "user.name", "Dev")
    run_git(repo, "config", "commit.gpgsign", "false")
    commit_file(repo, "README.md", "# proj\n", "initial commit")
    return repo


@pytest.fixture
def remote_repo(tmp_path: Path, git_repo: Path) -> Path:
    """A bare ``origin`` for ``git_repo`` with ``main`` already pushed."""

    remote = tmp_path / "remote.git"
    run_git(tmp_path, "init", "-q", "--bare", str(remote))
    run_git(git_repo, "remote", "add", "origin", str(remote))
    run_git(git_repo, "push", "-q", "origin", "main")
    return remote


@pytest.fixture
def worktree(tmp_path: Path, git_repo: Path) -> Path:
    """A linked worktree of ``git_repo`` on a new ``feature`` branch."""

    path = tmp_path / "proj-feature"
    run_git(git_repo, "worktree", "add", "-q", "-b", "feature", str(path), "main")
    return path
