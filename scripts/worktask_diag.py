"""Worktask diagnostics CLI."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from worktask_mcp.config import ConfigError, WorktaskSettings, load_settings
from worktask_mcp.git import GitRunnerError
from worktask_mcp.state import ExecutionStateStore
from worktask_mcp.tasks import TaskStore, TaskStoreError, resolve_blocking
from worktask_mcp.worktrees import is_safe_to_remove


def load_config(start_dir: Path | None = None) -> WorktaskSettings:
    try:
        return load_settings(start_dir)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        raise SystemExit(1)


def cmd_current(args: argparse.Namespace) -> None:
    settings = load_config()
    store = ExecutionStateStore(settings.resolved_base_dir)
    state = store.read()
    payload = {"path": str(store.path), "state": state.model_dump() if state else None}
    print(json.dumps(payload, indent=2))


def cmd_blocked(args: argparse.Namespace) -> None:
    settings = load_config()
    store = TaskStore(settings.resolved_tasks_dir)
    try:
        all_tasks = store.tasks_by_id()
    except TaskStoreError as exc:
        print(f"Task store unavailable: {exc}")
        raise SystemExit(1)

    task = all_tasks.get(args.task_id)
    if task is None:
        print(f"No task {args.task_id} in {store.tasks_file}")
        raise SystemExit(1)

    status = resolve_blocking(task, all_tasks)
    if args.json:
        print(
            json.dumps(
                {
                    "task_id": task.id,
                    "is_blocked": status.is_blocked,
                    "blocking_task_ids": status.blocking_ids,
                },
                indent=2,
            )
        )
    elif status.is_blocked:
        ids = ", ".join(str(task_id) for task_id in status.blocking_ids)
        print(f"{task.id} [{task.status.value}] blocked by {ids}")
    else:
        print(f"{task.id} [{task.status.value}] not blocked")


def cmd_check_worktree(args: argparse.Namespace) -> None:
    try:
        verdict = is_safe_to_remove(args.path)
    except (ValueError, GitRunnerError) as exc:
        print(f"Cannot check worktree: {exc}")
        raise SystemExit(1)
    print(json.dumps(verdict.model_dump(), indent=2))
    if not verdict.safe:
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Worktask diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_current = sub.add_parser("current", help="Show the current execution state")
    p_current.set_defaults(func=cmd_current)

    p_blocked = sub.add_parser("blocked", help="Show which tasks block a task")
    p_blocked.add_argument("task_id", type=int)
    p_blocked.add_argument("--json", action="store_true", help="Output JSON")
    p_blocked.set_defaults(func=cmd_blocked)

    p_check = sub.add_parser(
        "check-worktree",
        help="Check whether a worktree can be removed without losing work",
    )
    p_check.add_argument("path")
    p_check.set_defaults(func=cmd_check_worktree)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
