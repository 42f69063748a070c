"""Result models for worktree inspection and cleanup."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class WorktreeSafetyVerdict(BaseModel):
    """Whether a worktree can be removed without losing work."""

    safe: bool = Field(..., description="True when removal cannot lose work.")
    reason: str = Field(..., min_length=1, description="Why the worktree is or is not safe.")


class CleanupResult(BaseModel):
    """Outcome of a worktree cleanup attempt; exactly one of message/error is set."""

    success: bool
    message: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> "CleanupResult":
        if self.success and (self.message is None or self.error is not None):
            raise ValueError("A successful cleanup carries a message and no error")
        if not self.success and (self.error is None or self.message is not None):
            raise ValueError("A failed cleanup carries an error and no message")
        return self


class WorktreeInfo(BaseModel):
    """State of the worktree backing a task after activation."""

    worktree_path: str
    branch_name: str
    worktree_created: bool = False
    needs_directory_switch: bool = False
    clean: bool | None = None
    message: str | None = None


__all__ = ["CleanupResult", "WorktreeInfo", "WorktreeSafetyVerdict"]
