"""Worktask MCP: task activation and worktree lifecycle tooling."""

__version__ = "0.1.0"

__all__ = ["__version__"]
