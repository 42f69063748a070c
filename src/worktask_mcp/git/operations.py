"""Read-only git inspection and worktree add/remove helpers.

Repository-wide operations (listing, adding and removing worktrees) take the
main repository directory. Status and push-state checks take the directory of
the checkout being inspected, which may itself be a worktree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from .runner import GitResult, GitRunner, GitRunnerError


class GitCommandError(GitRunnerError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, operation: str, result: GitResult) -> None:
        super().__init__(f"Git operation failed: {operation}: {result.error_text}")
        self.operation = operation
        self.result = result

    @property
    def detail(self) -> str:
        return self.result.error_text


@dataclass(slots=True)
class WorktreeEntry:
    """One entry of ``git worktree list --porcelain``."""

    path: str
    head: str | None = None
    branch: str | None = None
    detached: bool = False
    bare: bool = False


def _ensure_ok(result: GitResult, operation: str) -> GitResult:
    if not result.ok:
        raise GitCommandError(operation, result)
    return result


def has_uncommitted_changes(git: GitRunner, directory: str | Path) -> bool:
    """Return True when the checkout has modified, staged, deleted or untracked files."""

    result = _ensure_ok(git.run(directory, "status", "--porcelain"), "status")
    return bool(result.stdout.strip())


def list_remotes(git: GitRunner, directory: str | Path) -> list[str]:
    result = _ensure_ok(git.run(directory, "remote"), "remote")
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def upstream_branch(git: GitRunner, directory: str | Path) -> str | None:
    """Return the upstream tracking ref of HEAD (e.g. ``origin/main``), if any."""

    result = git.run(
        directory, "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"
    )
    if not result.ok:
        return None
    upstream = result.stdout.strip()
    return upstream or None


def count_unpushed_commits(git: GitRunner, directory: str | Path) -> tuple[int, str | None]:
    """Count commits reachable from HEAD that are not on the remote.

    With an upstream configured the count is ``@{u}..HEAD``. Without one it is
    the number of commits not reachable from any remote-tracking ref.
    Returns ``(count, upstream)``.
    """

    upstream = upstream_branch(git, directory)
    if upstream is not None:
        args = ("rev-list", "--count", "@{u}..HEAD")
    else:
        args = ("rev-list", "--count", "HEAD", "--not", "--remotes")
    result = _ensure_ok(git.run(directory, *args), "rev-list")
    try:
        count = int(result.stdout.strip() or "0")
    except ValueError as exc:
        raise GitRunnerError(f"Unexpected rev-list output: {result.stdout!r}") from exc
    return count, upstream


def current_branch(git: GitRunner, directory: str | Path) -> str | None:
    """Return the checked-out branch name, or None when HEAD is detached."""

    result = _ensure_ok(
        git.run(directory, "rev-parse", "--abbrev-ref", "HEAD"), "rev-parse --abbrev-ref HEAD"
    )
    branch = result.stdout.strip()
    return None if branch == "HEAD" else branch


def branch_exists(git: GitRunner, directory: str | Path, branch: str) -> bool:
    result = git.run(directory, "rev-parse", "--verify", "--quiet", f"refs/heads/{branch}")
    return result.ok


def default_branch(git: GitRunner, directory: str | Path) -> str:
    """Return the remote default branch, falling back to ``main`` then ``master``."""

    result = git.run(directory, "symbolic-ref", "--short", "refs/remotes/origin/HEAD")
    if result.ok and result.stdout.strip():
        return re.sub(r"^origin/", "", result.stdout.strip())
    for candidate in ("main", "master"):
        if branch_exists(git, directory, candidate):
            return candidate
    raise GitRunnerError("Could not determine default branch")


def parse_worktree_list(output: str) -> list[WorktreeEntry]:
    entries: list[WorktreeEntry] = []
    for block in output.strip().split("\n\n"):
        if not block.strip():
            continue
        fields: dict[str, str | bool] = {}
        for line in block.splitlines():
            key, _, value = line.partition(" ")
            fields[key] = value if value else True
        path = fields.get("worktree")
        if not isinstance(path, str):
            continue
        head = fields.get("HEAD")
        branch = fields.get("branch")
        entries.append(
            WorktreeEntry(
                path=path,
                head=head if isinstance(head, str) else None,
                branch=re.sub(r"^refs/heads/", "", branch) if isinstance(branch, str) else None,
                detached=bool(fields.get("detached")),
                bare=bool(fields.get("bare")),
            )
        )
    return entries


def list_worktrees(git: GitRunner, repo_dir: str | Path) -> list[WorktreeEntry]:
    result = _ensure_ok(git.run(repo_dir, "worktree", "list", "--porcelain"), "worktree list")
    return parse_worktree_list(result.stdout)


def find_worktree_for_branch(
    git: GitRunner, repo_dir: str | Path, branch: str
) -> WorktreeEntry | None:
    for entry in list_worktrees(git, repo_dir):
        if entry.branch == branch:
            return entry
    return None


def worktree_at_path(git: GitRunner, repo_dir: str | Path, path: str | Path) -> WorktreeEntry | None:
    target = Path(path).expanduser().resolve()
    for entry in list_worktrees(git, repo_dir):
        if Path(entry.path).resolve() == target:
            return entry
    return None


def create_worktree(
    git: GitRunner,
    repo_dir: str | Path,
    worktree_path: str | Path,
    branch: str,
    base_branch: str | None = None,
) -> None:
    """Add a worktree checking out ``branch``; create it from ``base_branch`` when given."""

    if base_branch:
        args = ("worktree", "add", "-b", branch, str(worktree_path), base_branch)
    else:
        args = ("worktree", "add", str(worktree_path), branch)
    _ensure_ok(git.run(repo_dir, *args), f"worktree add {worktree_path} {branch}")


def remove_worktree(git: GitRunner, repo_dir: str | Path, worktree_path: str | Path) -> GitResult:
    """Run ``git worktree remove`` without ``--force``; the caller inspects the result."""

    return git.run(repo_dir, "worktree", "remove", str(worktree_path))


def is_worktree(directory: str | Path) -> bool:
    """A linked worktree has a ``.git`` file; the main checkout has a ``.git`` directory."""

    return (Path(directory) / ".git").is_file()


def main_repo_dir(directory: str | Path) -> Path:
    """Return the main repository root for ``directory``, which may be a worktree."""

    directory = Path(directory).expanduser().resolve()
    if not is_worktree(directory):
        return directory

    content = (directory / ".git").read_text(encoding="utf-8")
    match = re.search(r"gitdir:\s*(.+)", content)
    if not match:
        raise GitRunnerError(f"Invalid .git file format in worktree {directory}")
    gitdir = Path(match.group(1).strip())
    if not gitdir.is_absolute():
        gitdir = directory / gitdir
    # gitdir is <main>/.git/worktrees/<name>
    return gitdir.resolve().parent.parent.parent


__all__ = [
    "GitCommandError",
    "WorktreeEntry",
    "branch_exists",
    "count_unpushed_commits",
    "create_worktree",
    "current_branch",
    "default_branch",
    "find_worktree_for_branch",
    "has_uncommitted_changes",
    "is_worktree",
    "list_remotes",
    "list_worktrees",
    "main_repo_dir",
    "parse_worktree_list",
    "remove_worktree",
    "upstream_branch",
    "worktree_at_path",
]
