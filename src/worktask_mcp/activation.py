"""Starting work on a task: validate, resolve blockers, prepare the worktree, record state."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .config import WorktaskSettings
from .git import GitRunner, GitRunnerError
from .state import ExecutionStateError, ExecutionStateStore
from .tasks import Task, TaskStore, TaskStoreError, resolve_blocking
from .worktrees import WorktreeError, extract_worktree_name, manage_worktree

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Task validated successfully and execution state written"

WORKTREE_FIELDS = frozenset(
    {
        "worktree_path",
        "worktree_name",
        "worktree_created",
        "worktree_clean",
        "branch_name",
        "needs_directory_switch",
    }
)


class TaskValidationError(ValueError):
    """Raised internally when an activation request fails validation."""

    def __init__(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}


class ActivationError(BaseModel):
    error: str = Field(..., description="Human-readable failure description.")
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


class ActivationResult(BaseModel):
    """Outcome of a successful activation.

    The worktree fields are only part of the payload when worktree management
    is enabled; otherwise they are left out entirely rather than sent as null.
    """

    task_id: int
    title: str
    category: str
    type: str
    status: str
    is_blocked: bool
    blocking_task_ids: list[int] = Field(default_factory=list)
    execution_state_file: str
    message: str = SUCCESS_MESSAGE
    worktree_path: str | None = None
    worktree_name: str | None = None
    worktree_created: bool | None = None
    worktree_clean: bool | None = None
    branch_name: str | None = None
    needs_directory_switch: bool | None = None
    include_worktree: bool = Field(default=False, exclude=True)

    def to_payload(self) -> dict[str, Any]:
        exclude = None if self.include_worktree else set(WORKTREE_FIELDS)
        return self.model_dump(exclude=exclude)


class WorkActivator:
    def __init__(
        self,
        settings: WorktaskSettings,
        store: TaskStore,
        state_store: ExecutionStateStore,
        git: GitRunner | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._state_store = state_store
        self._git = git

    def _validate(self, task_id: Any) -> tuple[Task, Task | None, dict[int, Task]]:
        if task_id is None:
            raise TaskValidationError("task-id parameter is required")
        if isinstance(task_id, bool) or not isinstance(task_id, int):
            raise TaskValidationError(
                "task-id must be an integer",
                {"provided_value": task_id, "provided_type": type(task_id).__name__},
            )

        all_tasks = self._store.tasks_by_id()
        task = all_tasks.get(task_id)
        tasks_file = str(self._store.tasks_file)
        if task is None:
            raise TaskValidationError(
                "No task found with the specified task-id",
                {"task_id": task_id, "file": tasks_file},
            )

        parent = None
        if task.parent_id is not None:
            parent = all_tasks.get(task.parent_id)
            if parent is None:
                raise TaskValidationError(
                    "Task references a parent story that does not exist",
                    {"task_id": task_id, "parent_id": task.parent_id, "file": tasks_file},
                )
        return task, parent, all_tasks

    def activate(self, task_id: Any, *, cwd: Path | None = None) -> ActivationResult | ActivationError:
        """Activate ``task_id``; failures come back as an ActivationError rather than raising."""

        try:
            task, parent, all_tasks = self._validate(task_id)
        except TaskValidationError as exc:
            logger.info("Task activation rejected", extra={"error": exc.message, **exc.metadata})
            return ActivationError(error=exc.message, metadata=exc.metadata)
        except TaskStoreError as exc:
            logger.warning("Task store unreadable", extra={"task_id": task_id, "error": str(exc)})
            return ActivationError(
                error=str(exc),
                metadata={
                    "task_id": task_id,
                    "file": str(self._store.tasks_file),
                    "operation": "read-tasks",
                },
            )

        blocking = resolve_blocking(task, all_tasks)
        worktree_fields: dict[str, Any] = {}
        message = SUCCESS_MESSAGE

        if self._settings.worktree_management:
            try:
                git = self._git or GitRunner(timeout=self._settings.git_timeout_seconds)
                info = manage_worktree(self._settings, task, parent, git=git, cwd=cwd)
            except WorktreeError as exc:
                return ActivationError(
                    error=str(exc), metadata={"task_id": task.id, **exc.metadata}
                )
            except GitRunnerError as exc:
                logger.warning(
                    "Worktree management failed",
                    extra={"task_id": task.id, "error": str(exc)},
                )
                return ActivationError(
                    error=str(exc), metadata={"task_id": task.id, "operation": "manage-worktree"}
                )
            if info.needs_directory_switch and info.message:
                message = f"{SUCCESS_MESSAGE}. {info.message}"
            worktree_fields = {
                "include_worktree": True,
                "worktree_path": info.worktree_path,
                "worktree_name": extract_worktree_name(info.worktree_path),
                "worktree_created": info.worktree_created,
                "worktree_clean": info.clean,
                "branch_name": info.branch_name,
                "needs_directory_switch": info.needs_directory_switch,
            }

        try:
            self._state_store.write(task.id, task.parent_id)
        except ExecutionStateError as exc:
            logger.warning(
                "Execution state write failed",
                extra={"task_id": task.id, "error": str(exc)},
            )
            metadata: dict[str, Any] = {
                "task_id": task.id,
                "operation": "write-execution-state",
                "file": str(self._state_store.path),
            }
            if worktree_fields:
                metadata["worktree_path"] = worktree_fields["worktree_path"]
            return ActivationError(error=str(exc), metadata=metadata)

        return ActivationResult(
            task_id=task.id,
            title=task.title,
            category=task.category,
            type=task.type.value,
            status=task.status.value,
            is_blocked=blocking.is_blocked,
            blocking_task_ids=list(blocking.blocking_ids),
            execution_state_file=str(self._state_store.path),
            message=message,
            **worktree_fields,
        )


def activate(config: WorktaskSettings, task_id: Any) -> ActivationResult | ActivationError:
    """Build the stores from ``config`` and activate ``task_id``."""

    activator = WorkActivator(
        config,
        TaskStore(config.resolved_tasks_dir),
        ExecutionStateStore(
            config.resolved_base_dir, lock_timeout=config.lock_timeout_seconds
        ),
    )
    return activator.activate(task_id)


__all__ = [
    "ActivationError",
    "ActivationResult",
    "SUCCESS_MESSAGE",
    "TaskValidationError",
    "WorkActivator",
    "activate",
]
