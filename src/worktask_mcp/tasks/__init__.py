"""Task models, the read-only task store and blocking resolution."""

from .blocking import BlockingStatus, resolve_blocking
from .models import Relation, RelationKind, Task, TaskStatus, TaskType
from .store import TaskStore, TaskStoreError

__all__ = [
    "BlockingStatus",
    "Relation",
    "RelationKind",
    "Task",
    "TaskStatus",
    "TaskStore",
    "TaskStoreError",
    "TaskType",
    "resolve_blocking",
]
