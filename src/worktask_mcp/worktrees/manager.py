"""Find or create the worktree that backs a task."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ..config import WorktaskSettings
from ..git import GitRunner
from ..git import operations as git_ops
from ..tasks import Task
from .models import WorktreeInfo

logger = logging.getLogger(__name__)

MAX_BRANCH_LENGTH = 200


class WorktreeError(RuntimeError):
    """Raised when the worktree for a task cannot be prepared."""

    def __init__(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.metadata = metadata or {}


def sanitize_branch_name(title: str, task_id: int, word_limit: int = 4) -> str:
    """Turn a title into a branch-safe slug, e.g. ``"Fix bug #123"`` -> ``"fix-bug-123"``.

    Falls back to ``task-<id>`` when nothing survives sanitisation.
    """

    words = title.lower().split()[:word_limit]
    slug = re.sub(r"[^a-z0-9-]", "", "-".join(words))
    slug = re.sub(r"-+", "-", slug).strip("-")
    if not slug:
        return f"task-{task_id}"
    return slug[:MAX_BRANCH_LENGTH].rstrip("-")


def branch_name_for(task: Task, parent_story: Task | None, word_limit: int = 4) -> str:
    """Branch for a task: the parent story's id and title when present, else the task's own."""

    source = parent_story or task
    slug = sanitize_branch_name(source.title, source.id, word_limit)
    if slug == f"task-{source.id}":
        return slug
    return f"{source.id}-{slug}"


def extract_worktree_name(worktree_path: str | Path | None) -> str | None:
    """Return the final path segment of ``worktree_path``, ignoring a trailing separator."""

    if worktree_path is None:
        return None
    stripped = str(worktree_path).rstrip("/\\")
    if not stripped:
        return None
    return re.split(r"[/\\]", stripped)[-1]


def derive_worktree_path(main_repo: Path, branch_name: str, prefix: str) -> Path:
    """Place worktrees beside the main checkout, optionally prefixed with the project name."""

    if prefix == "none":
        return main_repo.parent / branch_name
    return main_repo.parent / f"{main_repo.name}-{branch_name}"


def _switch_message(status: str, worktree_path: str) -> str:
    return (
        f"Worktree {status} at {worktree_path}. "
        "Please start a new session in that directory."
    )


def _base_branch(settings: WorktaskSettings, git: GitRunner, main_repo: Path) -> str:
    if settings.base_branch:
        if not git_ops.branch_exists(git, main_repo, settings.base_branch):
            raise WorktreeError(
                f"Configured base branch {settings.base_branch} does not exist",
                {"base_branch": settings.base_branch, "operation": "validate-base-branch"},
            )
        return settings.base_branch
    return git_ops.default_branch(git, main_repo)


def _in_place_info(git: GitRunner, worktree_path: str, branch_name: str) -> WorktreeInfo:
    actual = git_ops.current_branch(git, worktree_path)
    if actual != branch_name:
        raise WorktreeError(
            f"Worktree is on branch {actual} but expected {branch_name}",
            {
                "current_branch": actual,
                "expected_branch": branch_name,
                "worktree_path": worktree_path,
                "operation": "verify-worktree-branch",
            },
        )
    return WorktreeInfo(
        worktree_path=worktree_path,
        branch_name=branch_name,
        clean=not git_ops.has_uncommitted_changes(git, worktree_path),
    )


def manage_worktree(
    settings: WorktaskSettings,
    task: Task,
    parent_story: Task | None,
    *,
    git: GitRunner,
    cwd: Path | None = None,
) -> WorktreeInfo:
    """Ensure the worktree for ``task`` exists and report where work should happen.

    Raises WorktreeError or GitRunnerError when the worktree cannot be prepared.
    """

    main_repo = git_ops.main_repo_dir(settings.resolved_base_dir)
    current_dir = Path(cwd or Path.cwd()).resolve()
    branch_name = branch_name_for(task, parent_story, settings.branch_title_words)

    existing = git_ops.find_worktree_for_branch(git, main_repo, branch_name)
    if existing is not None:
        if Path(existing.path).resolve() == current_dir:
            return _in_place_info(git, existing.path, branch_name)
        return WorktreeInfo(
            worktree_path=existing.path,
            branch_name=branch_name,
            needs_directory_switch=True,
            message=_switch_message("exists", existing.path),
        )

    worktree_path = derive_worktree_path(main_repo, branch_name, settings.worktree_prefix)
    path_text = str(worktree_path)
    at_path = git_ops.worktree_at_path(git, main_repo, worktree_path)

    if at_path is None:
        base = None
        if not git_ops.branch_exists(git, main_repo, branch_name):
            base = _base_branch(settings, git, main_repo)
        git_ops.create_worktree(git, main_repo, worktree_path, branch_name, base)
        logger.info(
            "Created worktree",
            extra={"worktree_path": path_text, "branch": branch_name, "base_branch": base},
        )
        return WorktreeInfo(
            worktree_path=path_text,
            branch_name=branch_name,
            worktree_created=True,
            needs_directory_switch=True,
            message=_switch_message("created", path_text),
        )

    if worktree_path.resolve() != current_dir:
        return WorktreeInfo(
            worktree_path=path_text,
            branch_name=branch_name,
            needs_directory_switch=True,
            message=_switch_message("exists", path_text),
        )

    return _in_place_info(git, path_text, branch_name)


__all__ = [
    "WorktreeError",
    "branch_name_for",
    "derive_worktree_path",
    "extract_worktree_name",
    "manage_worktree",
    "sanitize_branch_name",
]
