from __future__ import annotations

from worktask_mcp.tasks import Task, resolve_blocking


def _task(task_id: int, status: str = "open", blocked_by: tuple[int, ...] = (), related: tuple[int, ...] = ()) -> Task:
    relations = [
        {"id": index, "relates-to": target, "as-type": "blocked-by"}
        for index, target in enumerate(blocked_by, start=1)
    ]
    relations += [
        {"id": len(relations) + index, "relates-to": target, "as-type": "related"}
        for index, target in enumerate(related, start=1)
    ]
    return Task.model_validate(
        {"id": task_id, "title": f"Task {task_id}", "category": "x", "status": status, "relations": relations}
    )


def test_task_without_relations_is_not_blocked() -> None:
    task = _task(1)

    status = resolve_blocking(task, {1: task})

    assert status.is_blocked is False
    assert status.blocking_ids == []


def test_incomplete_blocker_blocks() -> None:
    blocker = _task(1, status="in-progress")
    task = _task(2, blocked_by=(1,))

    status = resolve_blocking(task, {1: blocker, 2: task})

    assert status.is_blocked is True
    assert status.blocking_ids == [1]


def test_completed_blocker_is_excluded() -> None:
    done = _task(1, status="completed")
    open_ = _task(3)
    task = _task(2, blocked_by=(1, 3))

    status = resolve_blocking(task, [done, open_, task])

    assert status.blocking_ids == [3]


def test_missing_blocker_still_blocks() -> None:
    task = _task(2, blocked_by=(42,))

    status = resolve_blocking(task, {2: task})

    assert status.is_blocked is True
    assert status.blocking_ids == [42]


def test_relation_order_is_preserved() -> None:
    tasks = {task.id: task for task in (_task(5), _task(3), _task(9, status="completed"))}
    task = _task(1, blocked_by=(5, 9, 3))

    assert resolve_blocking(task, tasks).blocking_ids == [5, 3]


def test_non_blocking_relations_are_ignored() -> None:
    other = _task(7)
    task = _task(1, related=(7,))

    assert resolve_blocking(task, {7: other}).is_blocked is False
