from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conftest import write_jsonl
from worktask_mcp.tasks import RelationKind, TaskStatus, TaskStore, TaskType


def test_loads_active_then_completed_tasks(tmp_path: Path) -> None:
    write_jsonl(
        tmp_path / "tasks.jsonl",
        [
            {"id": 2, "title": "Write docs", "category": "simple", "parent-id": 10},
            {
                "id": 3,
                "title": "Ship",
                "category": "medium",
                "type": "feature",
                "relations": [{"id": 1, "relates-to": 1, "as-type": "blocked-by"}],
            },
        ],
    )
    write_jsonl(
        tmp_path / "complete.jsonl",
        [{"id": 1, "title": "Setup", "category": "simple", "status": "completed"}],
    )

    store = TaskStore(tmp_path)
    tasks = store.list_all_tasks()

    assert [task.id for task in tasks] == [2, 3, 1]
    assert tasks[0].parent_id == 10
    assert tasks[0].type is TaskType.TASK
    assert tasks[0].status is TaskStatus.OPEN
    assert tasks[1].relations[0].as_type is RelationKind.BLOCKED_BY
    assert tasks[1].relations[0].relates_to == 1
    assert store.get_task(1).is_completed
    assert store.get_task(99) is None


def test_missing_files_yield_no_tasks(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "absent")

    assert store.list_all_tasks() == []
    assert store.tasks_file == tmp_path / "absent" / "tasks.jsonl"


def test_legacy_closed_status_is_completed(tmp_path: Path) -> None:
    write_jsonl(tmp_path / "tasks.jsonl", [{"id": 5, "title": "Old", "category": "x", "status": "closed"}])

    task = TaskStore(tmp_path).get_task(5)

    assert task is not None
    assert task.status is TaskStatus.COMPLETED


def test_invalid_lines_are_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "tasks.jsonl"
    path.write_text(
        '{"id": 1, "title": "Good", "category": "x"}\n'
        "not json\n"
        "\n"
        '{"id": 0, "title": "Bad id", "category": "x"}\n'
        '{"id": 4, "title": "Also good", "category": "x", "type": "Story"}\n',
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING):
        tasks = TaskStore(tmp_path).list_all_tasks()

    assert [task.id for task in tasks] == [1, 4]
    assert tasks[1].is_story
    messages = [record.getMessage() for record in caplog.records]
    assert "Skipping malformed task line" in messages
    assert "Skipping invalid task line" in messages
