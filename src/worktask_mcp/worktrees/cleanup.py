"""Remove a task's worktree once it is safe to do so."""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import WorktaskSettings
from ..git import GitRunner, GitRunnerError
from ..git import operations as git_ops
from .models import CleanupResult
from .safety import is_safe_to_remove

logger = logging.getLogger(__name__)


def cleanup_worktree(
    repo_root: str | Path,
    worktree_path: str | Path,
    config: WorktaskSettings,
    *,
    git: GitRunner | None = None,
) -> CleanupResult:
    """Remove ``worktree_path`` from ``repo_root`` if the safety check passes.

    The check and the removal are separate git calls; if the worktree changes
    in between, ``git worktree remove`` refuses and that refusal is returned
    as the error. Removal never uses ``--force``.
    """

    repo = str(repo_root)
    path = str(worktree_path)
    if not repo.strip():
        raise ValueError("repo_root must be a non-empty path")
    if not path.strip():
        raise ValueError("worktree_path must be a non-empty path")

    if git is None:
        try:
            git = GitRunner(timeout=config.git_timeout_seconds)
        except GitRunnerError as exc:
            return CleanupResult(success=False, error=f"Cannot remove worktree: {exc}")

    verdict = is_safe_to_remove(path, git=git)
    logger.info(
        "Worktree cleanup attempt",
        extra={"repo_root": repo, "worktree_path": path, "safe": verdict.safe},
    )

    if not verdict.safe:
        logger.warning(
            "Worktree cleanup skipped",
            extra={"worktree_path": path, "reason": verdict.reason},
        )
        return CleanupResult(success=False, error=f"Cannot remove worktree: {verdict.reason}")

    try:
        result = git_ops.remove_worktree(git, repo, path)
    except GitRunnerError as exc:
        error = str(exc)
    else:
        if result.ok:
            logger.info("Worktree removed", extra={"worktree_path": path})
            return CleanupResult(success=True, message=f"Worktree removed at {path}")
        error = result.error_text

    logger.warning("Worktree cleanup failed", extra={"worktree_path": path, "error": error})
    return CleanupResult(success=False, error=f"Failed to remove worktree: {error}")


__all__ = ["cleanup_worktree"]
