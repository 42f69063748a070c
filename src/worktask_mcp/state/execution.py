"""Persistence of the single "currently active task" record."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

STATE_FILE_NAME = ".worktask-current.json"


class ExecutionStateError(RuntimeError):
    """Raised when the execution state cannot be written."""


class ExecutionState(BaseModel):
    """Which task is currently being worked on, and since when."""

    task_id: int = Field(..., description="Identifier of the active task.")
    story_id: int | None = Field(default=None, description="Parent story of the active task.")
    started_at: str = Field(..., min_length=1, description="ISO-8601 activation timestamp.")


class ExecutionStateStore:
    """Reads and overwrites ``<base_dir>/.worktask-current.json``.

    Writes replace the whole record atomically. Each write's ``started_at`` is
    strictly later than the previously persisted one, even when the wall clock
    does not advance between writes.
    """

    def __init__(
        self,
        base_dir: Path,
        *,
        lock_timeout: float = 30.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._lock_timeout = lock_timeout
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._mutex = threading.Lock()
        self._last_started_at: datetime | None = None

    @property
    def path(self) -> Path:
        return self._base_dir / STATE_FILE_NAME

    @property
    def lock_path(self) -> Path:
        return self._base_dir / f"{STATE_FILE_NAME}.lock"

    def read(self) -> ExecutionState | None:
        """Return the stored state, or None when absent or unreadable."""

        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return ExecutionState.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "Ignoring unreadable execution state",
                extra={"path": str(self.path), "error": str(exc)},
            )
            return None

    def write(self, task_id: int, story_id: int | None = None) -> ExecutionState:
        """Overwrite the execution state with a fresh activation of ``task_id``."""

        with self._mutex, self._file_lock():
            state = ExecutionState(
                task_id=task_id,
                story_id=story_id,
                started_at=self._next_timestamp().isoformat(timespec="microseconds"),
            )
            self._base_dir.mkdir(parents=True, exist_ok=True)
            temp_path = self.path.with_name(self.path.name + ".tmp")
            try:
                temp_path.write_text(state.model_dump_json(), encoding="utf-8")
                os.replace(temp_path, self.path)
            except OSError as exc:
                temp_path.unlink(missing_ok=True)
                raise ExecutionStateError(f"Failed to write {self.path}: {exc}") from exc

        logger.info(
            "Execution state written",
            extra={"task_id": task_id, "story_id": story_id, "path": str(self.path)},
        )
        return state

    def _persisted_started_at(self) -> datetime | None:
        state = self.read()
        if state is None:
            return None
        try:
            parsed = datetime.fromisoformat(state.started_at)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        candidates = [ts for ts in (self._last_started_at, self._persisted_started_at()) if ts]
        previous = max(candidates, default=None)
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        self._last_started_at = now
        return now

    def _lock_is_stale(self) -> bool:
        """A lock is stale when its holder PID is gone, or when it names no PID
        and is older than the lock timeout."""

        try:
            content = self.lock_path.read_text(encoding="utf-8").strip()
            age = time.time() - self.lock_path.stat().st_mtime
        except OSError:
            return False
        try:
            pid = int(content)
        except ValueError:
            return age > self._lock_timeout
        if pid <= 0:
            return age > self._lock_timeout
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
        except PermissionError:
            return False
        return False

    @contextmanager
    def _file_lock(self) -> Iterator[None]:
        self._base_dir.mkdir(parents=True, exist_ok=True)
        start = time.monotonic()
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.write(fd, str(os.getpid()).encode("utf-8"))
                os.close(fd)
                break
            except FileExistsError as exc:
                if self._lock_is_stale():
                    logger.warning(
                        "Removing stale execution state lock",
                        extra={"lock_path": str(self.lock_path)},
                    )
                    self.lock_path.unlink(missing_ok=True)
                    continue
                if time.monotonic() - start > self._lock_timeout:
                    raise ExecutionStateError(
                        f"Timed out waiting for execution state lock {self.lock_path}"
                    ) from exc
                time.sleep(0.02)

        try:
            yield
        finally:
            try:
                self.lock_path.unlink()
            except FileNotFoundError:
                pass


__all__ = ["ExecutionState", "ExecutionStateError", "ExecutionStateStore", "STATE_FILE_NAME"]
