# tests/test_history.py

from __future__ import annotations

from taskvim.core.history import UndoHistory
from taskvim.tasks.task_models import Task, TaskStatus


def _mutate_status(store, history: UndoHistory, task: Task, status: TaskStatus) -> Task:
    history.record(task)
    changed = task.copy()
    changed.status = status
    store.save_task(changed)
    return changed


def test_undo_then_redo_restores_both_states(store) -> None:
    history = UndoHistory(store)
    task = Task(title="a")
    store.save_task(task)

    _mutate_status(store, history, task, TaskStatus.DONE)

    restored = history.undo()
    assert restored is not None
    assert store.get_task(task.id).status is TaskStatus.TODO
    assert store.count_redo() == 1

    redone = history.redo()
    assert redone is not None
    assert store.get_task(task.id).status is TaskStatus.DONE
    assert store.count_redo() == 0
    assert store.count_history() == 1


def test_new_mutation_clears_redo(store) -> None:
    history = UndoHistory(store)
    task = Task(title="a")
    store.save_task(task)

    task = _mutate_status(store, history, task, TaskStatus.DOING)
    history.undo()
    assert store.count_redo() == 1

    current = store.get_task(task.id)
    _mutate_status(store, history, current, TaskStatus.ARCHIVED)

    assert store.count_redo() == 0
    assert history.redo() is None


def test_empty_logs_are_noops(store) -> None:
    history = UndoHistory(store)
    assert history.undo() is None
    assert history.redo() is None


def test_stale_entry_for_deleted_task_is_skipped(store) -> None:
    history = UndoHistory(store)
    keep = Task(title="keep")
    gone = Task(title="gone")
    store.save_task(keep)
    store.save_task(gone)

    _mutate_status(store, history, keep, TaskStatus.DONE)
    _mutate_status(store, history, gone, TaskStatus.DONE)
    store.delete_task(gone.id)

    restored = history.undo()

    assert restored is not None and restored.id == keep.id
    assert store.get_task(keep.id).status is TaskStatus.TODO
    assert store.count_history() == 0


def test_undo_keeps_current_position(store) -> None:
    history = UndoHistory(store)
    task = Task(title="a", position=0)
    store.save_task(task)

    history.record(task)
    moved = task.copy()
    moved.title = "renamed"
    moved.position = 7
    store.save_task(moved)

    history.undo()

    stored = store.get_task(task.id)
    assert stored.title == "a"
    assert stored.position == 7
