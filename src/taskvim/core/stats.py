# src/taskvim/core/stats.py

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from ..tasks.task_models import Task, TaskStatus


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    todo: int
    doing: int
    done: int
    archived: int

    @property
    def completion_rate(self) -> float:
        """Percentage of tasks in `done` (0.0 for an empty list)."""
        if self.total == 0:
            return 0.0
        return self.done / self.total * 100.0

    def lines(self) -> list[str]:
        return [
            f"Total Tasks: {self.total}",
            f"Todo: {self.todo}",
            f"Doing: {self.doing}",
            f"Done: {self.done}",
            f"Archived: {self.archived}",
            f"Completion Rate: {self.completion_rate:.1f}%",
        ]


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    counts = Counter(t.status for t in tasks)
    return TaskStats(
        total=sum(counts.values()),
        todo=counts[TaskStatus.TODO],
        doing=counts[TaskStatus.DOING],
        done=counts[TaskStatus.DONE],
        archived=counts[TaskStatus.ARCHIVED],
    )
