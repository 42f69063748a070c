"""Git CLI orchestration utilities."""

from .runner import (
    FakeGitRunner,
    GitNotFoundError,
    GitResult,
    GitRunner,
    GitRunnerError,
    GitTimeoutError,
)

__all__ = [
    "FakeGitRunner",
    "GitNotFoundError",
    "GitResult",
    "GitRunner",
    "GitRunnerError",
    "GitTimeoutError",
]
