"""Configuration management for Worktask MCP."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE_NAME = ".worktask.yml"
DEFAULT_TASKS_DIR_NAME = ".worktask"

WorktreePrefix = Literal["project-name", "none"]


class ConfigError(RuntimeError):
    """Raised when the project configuration cannot be loaded or is invalid."""


class WorktaskSettings(BaseSettings):
    """Runtime configuration sourced from environment variables, .env and .worktask.yml."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    base_dir: Path | None = Field(default=None, validation_alias="WORKTASK_BASE_DIR")
    tasks_dir: Path | None = Field(default=None, validation_alias="WORKTASK_TASKS_DIR")
    worktree_management: bool = Field(
        default=False, validation_alias="WORKTASK_WORKTREE_MANAGEMENT"
    )
    worktree_prefix: WorktreePrefix = Field(
        default="project-name", validation_alias="WORKTASK_WORKTREE_PREFIX"
    )
    base_branch: str | None = Field(default=None, validation_alias="WORKTASK_BASE_BRANCH")
    branch_title_words: int = Field(default=4, validation_alias="WORKTASK_BRANCH_TITLE_WORDS")
    git_timeout_seconds: float = Field(
        default=30.0, validation_alias="WORKTASK_GIT_TIMEOUT_SECONDS"
    )
    lock_timeout_seconds: float = Field(
        default=30.0, validation_alias="WORKTASK_LOCK_TIMEOUT_SECONDS"
    )
    log_level: str = Field(default="INFO", validation_alias="WORKTASK_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "WORKTASK_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("base_branch")
    @classmethod
    def _validate_base_branch(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("WORKTASK_BASE_BRANCH cannot be an empty string")
        return value.strip() if value is not None else None

    @field_validator("branch_title_words")
    @classmethod
    def _validate_branch_title_words(cls, value: int) -> int:
        if value < 1:
            raise ValueError("WORKTASK_BRANCH_TITLE_WORDS must be >= 1")
        return value

    @field_validator("git_timeout_seconds", "lock_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeouts must be positive")
        return value

    @property
    def resolved_base_dir(self) -> Path:
        return (self.base_dir or Path.cwd()).expanduser().resolve()

    @property
    def resolved_tasks_dir(self) -> Path:
        if self.tasks_dir is None:
            return self.resolved_base_dir / DEFAULT_TASKS_DIR_NAME
        return self.tasks_dir


def find_config_file(start_dir: Path) -> Path | None:
    """Search ``start_dir`` and its parents for a ``.worktask.yml`` file."""

    current = Path(start_dir).expanduser().resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")

    known = set(WorktaskSettings.model_fields)
    values: dict[str, Any] = {}
    for raw_key, value in document.items():
        key = str(raw_key).replace("-", "_")
        if key not in known:
            raise ConfigError(f"Unknown setting '{raw_key}' in {path}")
        values[key] = value
    return values


def _resolve_against(path: Path, anchor: Path) -> Path:
    expanded = path.expanduser()
    if not expanded.is_absolute():
        expanded = anchor / expanded
    return expanded.resolve()


def load_settings(start_dir: Path | None = None) -> WorktaskSettings:
    """Build settings for the workspace containing ``start_dir``.

    Values from ``.worktask.yml`` take precedence over environment variables.
    Relative paths are resolved against the directory holding the config file.
    """

    start = Path(start_dir or Path.cwd()).expanduser().resolve()
    config_file = find_config_file(start)
    config_dir = config_file.parent if config_file else start
    file_values = _read_config_file(config_file) if config_file else {}

    try:
        settings = WorktaskSettings(**file_values)
    except ValidationError as exc:
        source = str(config_file) if config_file else "environment"
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc

    base_dir = _resolve_against(settings.base_dir, config_dir) if settings.base_dir else config_dir
    settings.base_dir = base_dir

    if settings.tasks_dir is None:
        settings.tasks_dir = base_dir / DEFAULT_TASKS_DIR_NAME
    else:
        tasks_dir = _resolve_against(settings.tasks_dir, base_dir)
        if not tasks_dir.exists():
            raise ConfigError(
                f"Configured tasks_dir does not exist: {tasks_dir} "
                f"(relative paths are resolved from {base_dir})"
            )
        settings.tasks_dir = tasks_dir

    return settings


@lru_cache(maxsize=1)
def get_settings() -> WorktaskSettings:
    """Return cached settings for the current working directory."""

    return load_settings()


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "WorktaskSettings",
    "find_config_file",
    "get_settings",
    "load_settings",
]
