"""FastMCP server bootstrap for worktask."""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastmcp import Context, FastMCP

from . import __version__
from .config import WorktaskSettings, get_settings
from .git import GitRunner, GitRunnerError
from .state import ExecutionStateStore
from .tasks import TaskStore, TaskStoreError
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the worktask server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_server(
    settings: Optional[WorktaskSettings] = None,
    git_runner: GitRunner | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with its tools and status resource."""

    settings = settings or get_settings()

    git_metadata = {"available": False, "version": None, "error": None}
    try:
        if git_runner is None:
            git_runner = GitRunner(timeout=settings.git_timeout_seconds)
        version_result = git_runner.version()
        git_metadata["available"] = True
        if version_result.ok:
            git_metadata["version"] = version_result.stdout.strip()
        else:
            git_metadata["error"] = version_result.error_text
    except GitRunnerError as exc:
        git_metadata["error"] = str(exc)

    store = TaskStore(settings.resolved_tasks_dir)
    state_store = ExecutionStateStore(
        settings.resolved_base_dir, lock_timeout=settings.lock_timeout_seconds
    )

    server = FastMCP(
        name="Worktask MCP",
        version=__version__,
        instructions=(
            "Worktask tracks which task is being worked on, reports whether it is "
            "blocked by unfinished tasks, and manages the git worktree for each task. "
            "Use work_on to start a task and cleanup_worktree_after_completion to "
            "remove its worktree once the work is pushed."
        ),
    )

    handles = register_tools(
        server,
        settings=settings,
        store=store,
        state_store=state_store,
        git=git_runner,
    )

    @server.resource(
        "resource://worktask/status",
        name="worktask_status",
        title="Worktask MCP Status",
        description="Provides the current runtime status for the worktask MCP server.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing basic runtime state."""

        status_counts: dict[str, int] = {}
        task_error: str | None = None
        try:
            tasks = store.list_all_tasks()
        except TaskStoreError as exc:
            tasks = []
            task_error = str(exc)
        for task in tasks:
            status_counts[task.status.value] = status_counts.get(task.status.value, 0) + 1

        current = state_store.read()
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "base_dir": str(settings.resolved_base_dir),
            "tasks": {
                "dir": str(settings.resolved_tasks_dir),
                "count": len(tasks),
                "status_counts": status_counts,
                "error": task_error,
            },
            "execution_state": {
                "path": str(state_store.path),
                "current": current.model_dump() if current else None,
            },
            "worktrees": {
                "management": settings.worktree_management,
                "prefix": settings.worktree_prefix,
                "base_branch": settings.base_branch,
            },
            "git": git_metadata,
            "request_id": getattr(context, "request_id", None),
        }
        return json.dumps(payload)

    setattr(server, "task_store", store)
    setattr(server, "state_store", state_store)
    setattr(server, "git_runner", git_runner)
    setattr(server, "git_metadata", git_metadata)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the worktask MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching worktask MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "base_dir": str(settings.resolved_base_dir),
            "git_available": getattr(server, "git_metadata", {}).get("available"),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
