"""Tool registration for the worktask MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..activation import ActivationResult, WorkActivator
from ..config import WorktaskSettings
from ..git import GitRunner
from ..state import ExecutionStateStore
from ..tasks import TaskStore
from ..worktrees import cleanup_worktree, is_safe_to_remove

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    work_on: Any
    safe_to_remove_worktree: Any
    cleanup_worktree_after_completion: Any
    current_execution_state: Any
    activator: WorkActivator


def register_tools(
    server: FastMCP,
    *,
    settings: WorktaskSettings,
    store: TaskStore,
    state_store: ExecutionStateStore,
    git: GitRunner,
) -> ToolHandles:
    """Register the worktask MCP tools on the server."""

    activator = WorkActivator(settings, store, state_store, git)

    def _work_on(task_id: Any = None, context: Context | None = None) -> dict[str, Any]:
        """Start work on a task and record it as the current execution state."""

        outcome = activator.activate(task_id)
        if isinstance(outcome, ActivationResult):
            emit_log(
                context,
                "info",
                "Task activated",
                extra={
                    "task_id": outcome.task_id,
                    "is_blocked": outcome.is_blocked,
                    "blocking_task_ids": outcome.blocking_task_ids,
                },
            )
        else:
            emit_log(
                context,
                "warning",
                "Task activation failed",
                extra={"error": outcome.error, "details": outcome.metadata},
            )
        return outcome.to_payload()

    def _safe_to_remove_worktree(
        worktree_path: str, context: Context | None = None
    ) -> dict[str, Any]:
        verdict = is_safe_to_remove(worktree_path, git=git)
        emit_log(
            context,
            "debug",
            "Worktree safety checked",
            extra={"worktree_path": worktree_path, "safe": verdict.safe},
        )
        return verdict.model_dump()

    def _cleanup_worktree_after_completion(
        repo_root: str,
        worktree_path: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Remove a finished task's worktree, refusing when work would be lost."""

        result = cleanup_worktree(repo_root, worktree_path, settings, git=git)
        emit_log(
            context,
            "info" if result.success else "warning",
            "Worktree cleanup finished",
            extra={"worktree_path": worktree_path, "success": result.success},
        )
        return result.model_dump()

    def _current_execution_state(context: Context | None = None) -> dict[str, Any]:
        state = state_store.read()
        emit_log(
            context,
            "debug",
            "Execution state read",
            extra={"path": str(state_store.path), "present": state is not None},
        )
        if state is None:
            return {"state": None, "path": str(state_store.path)}
        return {"state": state.model_dump(), "path": str(state_store.path)}

    tool_work_on = server.tool(
        name="work_on",
        description=(
            "Begin work on a task by id. Validates the task, reports whether it is "
            "blocked by unfinished tasks, optionally prepares its git worktree, and "
            "records it as the current execution state."
        ),
    )(_work_on)

    tool_safe = server.tool(
        name="safe_to_remove_worktree",
        description=(
            "Check whether a git worktree can be removed without losing uncommitted "
            "or unpushed work. Read-only."
        ),
    )(_safe_to_remove_worktree)

    tool_cleanup = server.tool(
        name="cleanup_worktree_after_completion",
        description=(
            "Remove a worktree after its task is complete. Refuses when the worktree "
            "has uncommitted changes, no remote, or unpushed commits."
        ),
    )(_cleanup_worktree_after_completion)

    tool_state = server.tool(
        name="current_execution_state",
        description="Return the task currently recorded as being worked on, if any.",
    )(_current_execution_state)

    return ToolHandles(
        work_on=tool_work_on,
        safe_to_remove_worktree=tool_safe,
        cleanup_worktree_after_completion=tool_cleanup,
        current_execution_state=tool_state,
        activator=activator,
    )


def emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)


__all__ = ["ToolHandles", "emit_log", "register_tools"]
