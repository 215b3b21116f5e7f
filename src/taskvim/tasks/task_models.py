# src/taskvim/tasks/task_models.py

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from ..errors import SerializationError

MIN_PRIORITY = 1
MAX_PRIORITY = 5
DEFAULT_PRIORITY = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clamp_priority(value: int) -> int:
    return max(MIN_PRIORITY, min(MAX_PRIORITY, int(value)))


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    The cycle is todo -> doing -> done -> archived -> todo.
    Values are stored lowercase so filter expressions like `status=todo` match.
    """

    TODO = "todo"
    DOING = "doing"
    DONE = "done"
    ARCHIVED = "archived"

    def next(self) -> TaskStatus:
        order = list(TaskStatus)
        return order[(order.index(self) + 1) % len(order)]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.TODO


@dataclass(slots=True)
class Task:
    title: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: int = DEFAULT_PRIORITY
    due_date: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    tags: set[str] = field(default_factory=set)
    project: str | None = None
    recurrence_rule: str | None = None
    dependencies: set[uuid.UUID] = field(default_factory=set)
    position: int = 0

    def __post_init__(self) -> None:
        self.priority = clamp_priority(self.priority)

    def touch(self) -> None:
        self.updated_at = utc_now()

    def copy(self) -> Task:
        return replace(self, tags=set(self.tags), dependencies=set(self.dependencies))

    # ---- snapshot codec (undo/redo logs) ----

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "tags": sorted(self.tags),
            "project": self.project,
            "recurrence_rule": self.recurrence_rule,
            "dependencies": sorted(str(d) for d in self.dependencies),
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        due = data.get("due_date")
        return cls(
            id=uuid.UUID(str(data["id"])),
            title=str(data["title"]),
            description=data.get("description"),
            status=TaskStatus.from_db(data.get("status")),
            priority=int(data.get("priority", DEFAULT_PRIORITY)),
            due_date=datetime.fromisoformat(due) if due else None,
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            tags=set(data.get("tags") or []),
            project=data.get("project"),
            recurrence_rule=data.get("recurrence_rule"),
            dependencies={uuid.UUID(str(d)) for d in data.get("dependencies") or []},
            position=int(data.get("position", 0)),
        )

    def to_snapshot(self) -> str:
        try:
            return json.dumps(self.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cannot encode task {self.id}: {e}") from e

    @classmethod
    def from_snapshot(cls, raw: str) -> Task:
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("snapshot is not a JSON object")
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"cannot decode task snapshot: {e}") from e
