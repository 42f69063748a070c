"""Worktree safety checks, cleanup and per-task worktree management."""

from .cleanup import cleanup_worktree
from .manager import (
    WorktreeError,
    branch_name_for,
    extract_worktree_name,
    manage_worktree,
    sanitize_branch_name,
)
from .models import CleanupResult, WorktreeInfo, WorktreeSafetyVerdict
from .safety import is_safe_to_remove

__all__ = [
    "CleanupResult",
    "WorktreeError",
    "WorktreeInfo",
    "WorktreeSafetyVerdict",
    "branch_name_for",
    "cleanup_worktree",
    "extract_worktree_name",
    "is_safe_to_remove",
    "manage_worktree",
    "sanitize_branch_name",
]
