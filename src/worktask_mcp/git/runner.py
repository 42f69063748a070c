"""Synchronous runner for the git CLI."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .utils import sanitize_environment

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class GitRunnerError(RuntimeError):
    """Base class for git runner errors."""


class GitNotFoundError(GitRunnerError):
    """Raised when the git executable cannot be located."""


class GitTimeoutError(GitRunnerError):
    """Raised when a git invocation exceeds its timeout."""


@dataclass(slots=True)
class GitResult:
    """Holds the outcome of a git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error_text(self) -> str:
        return self.stderr.strip() or self.stdout.strip() or f"git exited with {self.returncode}"


class GitRunner:
    """Execute git commands against a directory with a bounded runtime."""

    def __init__(
        self,
        executable: Path | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._executable_path = self._resolve_executable(executable)
        self._timeout = timeout

    @staticmethod
    def _resolve_executable(explicit: Path | None) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise GitNotFoundError(f"git executable not found at {candidate}")

        binary = shutil.which("git")
        if binary is None:
            raise GitNotFoundError("git executable not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    @property
    def timeout(self) -> float:
        return self._timeout

    def run(self, directory: str | Path, *args: str) -> GitResult:
        """Run ``git -C directory args...`` and return its result.

        A non-zero exit is reported through the result, not raised.
        """

        return self._invoke("-C", str(directory), *args)

    def version(self) -> GitResult:
        return self._invoke("--version")

    def _invoke(self, *args: str) -> GitResult:
        cmd = [str(self._executable_path), "--no-pager", *args]
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=sanitize_environment(),
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            logger.warning(
                "git command timed out",
                extra={"command": cmd, "timeout": self._timeout},
            )
            raise GitTimeoutError(
                f"git {' '.join(args)} timed out after {self._timeout:g}s"
            ) from exc
        except FileNotFoundError as exc:
            raise GitNotFoundError(f"git executable not found at {self._executable_path}") from exc

        return GitResult(
            args=tuple(cmd),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


class FakeGitRunner(GitRunner):
    """Test double that replays canned git results."""

    def __init__(self, responses: Iterable[GitResult | Exception] | None = None) -> None:  # type: ignore[override]
        self._responses = list(responses or [])
        self._invocations: list[tuple[str, ...]] = []
        self._executable_path = Path("/tmp/fake-git")
        self._timeout = DEFAULT_TIMEOUT_SECONDS

    def _invoke(self, *args: str) -> GitResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        if self._responses:
            response = self._responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return GitResult(args=tuple(args), returncode=0, stdout="", stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations
