"""Blocking-dependency resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .models import RelationKind, Task


@dataclass(slots=True)
class BlockingStatus:
    is_blocked: bool
    blocking_ids: list[int] = field(default_factory=list)


def _index(all_tasks: Mapping[int, Task] | Iterable[Task]) -> Mapping[int, Task]:
    if isinstance(all_tasks, Mapping):
        return all_tasks
    return {task.id: task for task in all_tasks}


def resolve_blocking(task: Task, all_tasks: Mapping[int, Task] | Iterable[Task]) -> BlockingStatus:
    """Return whether ``task`` is blocked and by which tasks.

    Every ``blocked-by`` relation whose target is not completed contributes its
    target id, in relation order. A target missing from ``all_tasks`` cannot be
    verified and therefore still blocks.
    """

    lookup = _index(all_tasks)
    blocking_ids: list[int] = []
    for relation in task.relations:
        if relation.as_type is not RelationKind.BLOCKED_BY:
            continue
        target = lookup.get(relation.relates_to)
        if target is None or not target.is_completed:
            blocking_ids.append(relation.relates_to)
    return BlockingStatus(is_blocked=bool(blocking_ids), blocking_ids=blocking_ids)


__all__ = ["BlockingStatus", "resolve_blocking"]
