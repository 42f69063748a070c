"""Decide whether a worktree can be destroyed without data loss."""

from __future__ import annotations

import logging
from pathlib import Path

from ..git import GitRunner, GitRunnerError
from ..git import operations as git_ops
from .models import WorktreeSafetyVerdict

logger = logging.getLogger(__name__)

UNCOMMITTED_REASON = "Uncommitted changes exist in worktree"
NO_REMOTE_REASON = "No remote configured; cannot verify commits are pushed to a remote"
SAFE_REASON = "Worktree is clean and all commits are pushed"


def _unpushed_reason(count: int, upstream: str | None) -> str:
    target = f"remote branch {upstream}" if upstream else "any remote"
    return f"Unpushed commits exist: {count} commit(s) not present on {target}"


def _evaluate(git: GitRunner, worktree_path: str) -> WorktreeSafetyVerdict:
    try:
        dirty = git_ops.has_uncommitted_changes(git, worktree_path)
    except GitRunnerError as exc:
        return WorktreeSafetyVerdict(
            safe=False, reason=f"Failed to check uncommitted changes: {exc}"
        )
    if dirty:
        return WorktreeSafetyVerdict(safe=False, reason=UNCOMMITTED_REASON)

    try:
        remotes = git_ops.list_remotes(git, worktree_path)
        if not remotes:
            return WorktreeSafetyVerdict(safe=False, reason=NO_REMOTE_REASON)
        count, upstream = git_ops.count_unpushed_commits(git, worktree_path)
    except GitRunnerError as exc:
        return WorktreeSafetyVerdict(
            safe=False, reason=f"Failed to verify commits are pushed to a remote: {exc}"
        )
    if count > 0:
        return WorktreeSafetyVerdict(safe=False, reason=_unpushed_reason(count, upstream))

    return WorktreeSafetyVerdict(safe=True, reason=SAFE_REASON)


def is_safe_to_remove(
    worktree_path: str | Path,
    *,
    git: GitRunner | None = None,
) -> WorktreeSafetyVerdict:
    """Inspect a worktree and return a safe/unsafe verdict with a reason.

    Checks run in order and the first failure decides the reason:
    uncommitted changes, missing remote, then unpushed commits. Only
    read-only git commands are issued.
    """

    path = str(worktree_path)
    if not path.strip():
        raise ValueError("worktree_path must be a non-empty path")

    if git is None:
        try:
            git = GitRunner()
        except GitRunnerError as exc:
            verdict = WorktreeSafetyVerdict(safe=False, reason=f"Cannot inspect worktree: {exc}")
            logger.warning("Worktree safety check unavailable", extra={"worktree_path": path})
            return verdict

    verdict = _evaluate(git, path)
    logger.info(
        "Worktree safety check",
        extra={"worktree_path": path, "safe": verdict.safe, "reason": verdict.reason},
    )
    return verdict


__all__ = ["is_safe_to_remove", "NO_REMOTE_REASON", "SAFE_REASON", "UNCOMMITTED_REASON"]
