# tests/test_task_store.py

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest

from taskvim.errors import SerializationError, StorageError
from taskvim.tasks.query import compile_filter
from taskvim.tasks.task_models import Task, TaskStatus
from taskvim.tasks.task_store import TaskStore


def test_save_and_get_round_trips_all_fields(store) -> None:
    dep = uuid.uuid4()
    due = datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    task = Task(
        title="ship",
        description="release notes",
        status=TaskStatus.DOING,
        priority=4,
        due_date=due,
        tags={"work", "urgent"},
        project="launch",
        recurrence_rule="weekly",
        dependencies={dep},
        position=3,
    )
    store.save_task(task)

    got = store.get_task(task.id)

    assert got is not None
    assert got.title == "ship"
    assert got.description == "release notes"
    assert got.status is TaskStatus.DOING
    assert got.priority == 4
    assert got.due_date == due
    assert got.tags == {"work", "urgent"}
    assert got.project == "launch"
    assert got.recurrence_rule == "weekly"
    assert got.dependencies == {dep}
    assert got.position == 3
    assert got.created_at == task.created_at


def test_save_replaces_tags(store) -> None:
    task = Task(title="a", tags={"x", "y"})
    store.save_task(task)
    task.tags = {"z"}
    store.save_task(task)

    assert store.get_task(task.id).tags == {"z"}
    assert store.count_tasks() == 1


def test_status_is_stored_lowercase(store) -> None:
    task = Task(title="a", status=TaskStatus.ARCHIVED)
    store.save_task(task)

    conn = sqlite3.connect(str(store.db_path))
    try:
        (raw,) = conn.execute("SELECT status FROM tasks").fetchone()
    finally:
        conn.close()
    assert raw == "archived"


def test_get_tasks_orders_by_position(store) -> None:
    store.save_task(Task(title="second", position=1))
    store.save_task(Task(title="first", position=0))
    store.save_task(Task(title="third", position=2))

    assert [t.title for t in store.get_tasks()] == ["first", "second", "third"]


def test_get_tasks_applies_compiled_filter(store) -> None:
    store.save_task(Task(title="a", priority=1, status=TaskStatus.TODO, position=0))
    store.save_task(Task(title="b", priority=4, status=TaskStatus.TODO, position=1))
    store.save_task(Task(title="c", priority=5, status=TaskStatus.DONE, position=2))
    store.save_task(Task(title="d", priority=5, project="homework", position=3))

    got = store.get_tasks(compile_filter("status=todo priority>=3"))
    assert [t.title for t in got] == ["b", "d"]

    got = store.get_tasks(compile_filter("projectcontainswork"))
    assert [t.title for t in got] == ["d"]


def test_delete_task_removes_links(store) -> None:
    task = Task(title="a", tags={"x"})
    store.save_task(task)
    store.delete_task(task.id)

    assert store.get_task(task.id) is None
    assert store.get_tasks() == []


def test_list_projects_is_sorted_and_distinct(store) -> None:
    store.save_task(Task(title="a", project="beta"))
    store.save_task(Task(title="b", project="alpha"))
    store.save_task(Task(title="c", project="beta"))
    store.save_task(Task(title="d"))

    assert store.list_projects() == ["alpha", "beta"]


def test_history_log_is_lifo(store) -> None:
    first = Task(title="first")
    second = Task(title="second")
    store.push_history(first)
    store.push_history(second)

    entry = store.get_latest_history()
    assert entry is not None
    entry_id, snap = entry
    assert snap.id == second.id

    store.delete_history_entry(entry_id)
    assert store.get_latest_history()[1].id == first.id
    assert store.count_history() == 1


def test_redo_log_clear(store) -> None:
    store.push_redo(Task(title="a"))
    store.push_redo(Task(title="b"))
    assert store.count_redo() == 2

    store.clear_redo()
    assert store.get_latest_redo() is None


def test_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(str(db))
    conn.execute(
        """
        CREATE TABLE tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'todo',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        "INSERT INTO tasks(id, title, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
        (str(uuid.uuid4()), "legacy", "done", "2024-01-01T00:00:00+00:00", "2024-01-01T00:00:00+00:00"),
    )
    conn.commit()
    conn.close()

    store = TaskStore(db)
    (task,) = store.get_tasks()

    assert task.title == "legacy"
    assert task.status is TaskStatus.DONE
    assert task.priority == 3
    assert task.position == 0
    assert task.project is None


def test_storage_errors_are_wrapped(store) -> None:
    with pytest.raises(StorageError):
        store.get_tasks([("no_such_column = ?", "x")])


def test_snapshot_decode_errors_are_serialization_errors() -> None:
    with pytest.raises(SerializationError):
        Task.from_snapshot("not json")
    with pytest.raises(SerializationError):
        Task.from_snapshot('{"title": "missing id"}')
