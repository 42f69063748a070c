"""Read-only access to the JSON Lines task files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .models import Task

logger = logging.getLogger(__name__)

ACTIVE_TASKS_FILE = "tasks.jsonl"
COMPLETED_TASKS_FILE = "complete.jsonl"


class TaskStoreError(RuntimeError):
    """Raised when the task files cannot be read."""


class TaskStore:
    """Loads tasks from ``tasks.jsonl`` and ``complete.jsonl`` in a tasks directory.

    Each non-blank line holds one task object. Lines that are not valid JSON or
    fail validation are skipped with a warning so one bad record does not hide
    the rest of the backlog.
    """

    def __init__(self, tasks_dir: Path) -> None:
        self._tasks_dir = Path(tasks_dir)

    @property
    def tasks_dir(self) -> Path:
        return self._tasks_dir

    @property
    def tasks_file(self) -> Path:
        return self._tasks_dir / ACTIVE_TASKS_FILE

    @property
    def complete_file(self) -> Path:
        return self._tasks_dir / COMPLETED_TASKS_FILE

    def _read_file(self, path: Path) -> list[Task]:
        if not path.exists():
            return []
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TaskStoreError(f"Failed to read {path}: {exc}") from exc

        tasks: list[Task] = []
        for line_number, line in enumerate(content.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                document = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.warning(
                    "Skipping malformed task line",
                    extra={"file": str(path), "line": line_number, "error": str(exc)},
                )
                continue
            try:
                tasks.append(Task.model_validate(document))
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid task line",
                    extra={"file": str(path), "line": line_number, "error": str(exc)},
                )
        return tasks

    def list_all_tasks(self) -> list[Task]:
        """Return active tasks followed by completed tasks, in file order."""

        return self._read_file(self.tasks_file) + self._read_file(self.complete_file)

    def tasks_by_id(self) -> dict[int, Task]:
        """Return every task keyed by id; a later duplicate replaces an earlier one."""

        return {task.id: task for task in self.list_all_tasks()}

    def get_task(self, task_id: int) -> Task | None:
        return self.tasks_by_id().get(task_id)


__all__ = ["TaskStore", "TaskStoreError", "ACTIVE_TASKS_FILE", "COMPLETED_TASKS_FILE"]
