"""Execution state persistence."""

from .execution import ExecutionState, ExecutionStateError, ExecutionStateStore, STATE_FILE_NAME

__all__ = ["ExecutionState", "ExecutionStateError", "ExecutionStateStore", "STATE_FILE_NAME"]
