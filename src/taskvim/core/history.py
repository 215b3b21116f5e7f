# src/taskvim/core/history.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..tasks.task_models import Task
from .ports import TaskRepo

logger = logging.getLogger(__name__)


class UndoHistory:
    """
    Single-step undo/redo over the store's two snapshot logs.

    Only in-place field mutations (title edit, status cycle, priority change)
    are recorded. Creating or deleting a task never touches either log.

    A snapshot restores the task's fields except `position`: positions are
    renumbered by inserts after the snapshot was taken, and restoring an old
    one would break uniqueness.
    """

    def __init__(self, store: TaskRepo) -> None:
        self._store = store

    def record(self, task: Task) -> None:
        """Call with the pre-mutation state, before the change is saved."""
        self._store.push_history(task)
        self._store.clear_redo()

    def undo(self) -> Task | None:
        return self._step(
            latest=self._store.get_latest_history,
            consume=self._store.delete_history_entry,
            push_inverse=self._store.push_redo,
            label="undo",
        )

    def redo(self) -> Task | None:
        return self._step(
            latest=self._store.get_latest_redo,
            consume=self._store.delete_redo_entry,
            push_inverse=self._store.push_history,
            label="redo",
        )

    def _step(
        self,
        *,
        latest: Callable[[], tuple[int, Task] | None],
        consume: Callable[[int], None],
        push_inverse: Callable[[Task], None],
        label: str,
    ) -> Task | None:
        while True:
            entry = latest()
            if entry is None:
                return None
            entry_id, snapshot = entry

            current = self._store.get_task(snapshot.id)
            if current is None:
                # The task was deleted after this entry was written.
                logger.debug("Dropping stale %s entry id=%s task=%s", label, entry_id, snapshot.id)
                consume(entry_id)
                continue

            push_inverse(current)
            restored = snapshot.copy()
            restored.position = current.position
            self._store.save_task(restored)
            consume(entry_id)
            logger.debug("%s applied entry id=%s task=%s", label, entry_id, snapshot.id)
            return restored
