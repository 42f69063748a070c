from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import write_jsonl
from worktask_mcp import __version__
from worktask_mcp.config import WorktaskSettings
from worktask_mcp.git import FakeGitRunner, GitNotFoundError, GitResult


class StubFastMCP:
    def __init__(self, *args, **kwargs):
        self.init_kwargs = kwargs
        self.tools: dict[str, object] = {}
        self.resources: dict[str, object] = {}

    def tool(self, *args, **kwargs):
        def decorator(fn):
            self.tools[kwargs.get("name", fn.__name__)] = fn
            return fn

        return decorator

    def resource(self, uri, **kwargs):
        def decorator(fn):
            self.resources[uri] = fn
            return fn

        return decorator

    def run(self):  # pragma: no cover - not used in tests
        return None


@pytest.fixture
def server_module(monkeypatch: pytest.MonkeyPatch):
    from worktask_mcp import server

    monkeypatch.setattr(server, "FastMCP", StubFastMCP)
    return server


def test_create_server_registers_tools_and_status(server_module, tmp_path: Path) -> None:
    write_jsonl(
        tmp_path / ".worktask" / "tasks.jsonl",
        [
            {"id": 1, "title": "Open", "category": "x"},
            {"id": 2, "title": "Done", "category": "x", "status": "completed"},
        ],
    )
    settings = WorktaskSettings(base_dir=tmp_path)
    git = FakeGitRunner([GitResult(args=("git",), returncode=0, stdout="git version 2.44.0\n", stderr="")])

    server = server_module.create_server(settings, git_runner=git)

    assert server.init_kwargs["name"] == "Worktask MCP"
    assert server.init_kwargs["version"] == __version__
    assert set(server.tools) == {
        "work_on",
        "safe_to_remove_worktree",
        "cleanup_worktree_after_completion",
        "current_execution_state",
    }
    assert server.git_metadata == {"available": True, "version": "git version 2.44.0", "error": None}

    server.tools["work_on"](1)
    status = json.loads(server.resources["resource://worktask/status"](context=None))

    assert status["server_version"] == __version__
    assert status["tasks"]["count"] == 2
    assert status["tasks"]["status_counts"] == {"open": 1, "completed": 1}
    assert status["execution_state"]["current"]["task_id"] == 1
    assert status["worktrees"]["management"] is False
    assert status["git"]["available"] is True


def test_create_server_without_git(server_module, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def missing_git(*_, **__):
        raise GitNotFoundError("git executable not found on PATH")

    monkeypatch.setattr(server_module, "GitRunner", missing_git)

    server = server_module.create_server(WorktaskSettings(base_dir=tmp_path))

    assert server.git_metadata["available"] is False
    assert "not found" in server.git_metadata["error"]
