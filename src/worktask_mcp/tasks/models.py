"""Task and relation models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskType(str, Enum):
    TASK = "task"
    BUG = "bug"
    FEATURE = "feature"
    STORY = "story"
    CHORE = "chore"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    DELETED = "deleted"


class RelationKind(str, Enum):
    BLOCKED_BY = "blocked-by"
    RELATED = "related"
    DISCOVERED_DURING = "discovered-during"


_STATUS_ALIASES = {"closed": TaskStatus.COMPLETED.value}


class Relation(BaseModel):
    """Directed link from the owning task to another task."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Identifier, unique within the owning task's relations.")
    relates_to: int = Field(
        ...,
        alias="relates-to",
        description="Identifier of the target task.",
    )
    as_type: RelationKind = Field(
        ...,
        alias="as-type",
        description="Kind of relation, e.g. blocked-by.",
    )

    @field_validator("as_type", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value


class Task(BaseModel):
    """A unit of work read from the task store."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., gt=0, description="Unique positive task identifier.")
    title: str = Field(..., description="Short human-readable title.")
    description: str = Field(default="", description="Longer free-form description.")
    category: str = Field(..., description="Category tag used to route the task.")
    type: TaskType = Field(default=TaskType.TASK, description="Kind of work item.")
    status: TaskStatus = Field(default=TaskStatus.OPEN, description="Lifecycle status.")
    parent_id: int | None = Field(
        default=None,
        alias="parent-id",
        description="Identifier of the owning story, if any.",
    )
    meta: dict[str, str] = Field(default_factory=dict, description="Arbitrary string metadata.")
    relations: list[Relation] = Field(
        default_factory=list,
        description="Ordered relations to other tasks.",
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            return _STATUS_ALIASES.get(normalized, normalized)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("relations", mode="before")
    @classmethod
    def _ensure_list(cls, value: Any):  # type: ignore[override]
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        raise TypeError("Relations must be a sequence of relation mappings")

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    @property
    def is_story(self) -> bool:
        return self.type is TaskType.STORY


__all__ = ["Relation", "RelationKind", "Task", "TaskStatus", "TaskType"]
