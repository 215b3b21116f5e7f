# src/taskvim/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from ..errors import StorageError, StorageIOError
from .query import CompiledFilter
from .task_models import Task, TaskStatus, utc_now

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Undo and redo logs live next to the tasks in `history` / `redo_history`.
    Each method opens its own SQLite connection.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"cannot create {self._db_path.parent}: {e}") from e
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except StorageError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise StorageError(f"cannot open {self._db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'todo',
                    priority INTEGER NOT NULL DEFAULT 3,
                    due_date TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    project TEXT,
                    recurrence_rule TEXT,
                    position INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("priority", "INTEGER NOT NULL DEFAULT 3")
            add_col("due_date", "TEXT")
            add_col("project", "TEXT")
            add_col("recurrence_rule", "TEXT")
            add_col("position", "INTEGER NOT NULL DEFAULT 0")

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tags (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT UNIQUE NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_tags (
                    task_id TEXT NOT NULL,
                    tag_id INTEGER NOT NULL,
                    PRIMARY KEY (task_id, tag_id),
                    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
                    FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS dependencies (
                    task_id TEXT NOT NULL,
                    depends_on TEXT NOT NULL,
                    PRIMARY KEY (task_id, depends_on),
                    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE
                )
                """
            )
            for table in ("history", "redo_history"):
                cur.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        task_id TEXT NOT NULL,
                        snapshot TEXT NOT NULL,
                        timestamp TEXT NOT NULL
                    )
                    """
                )

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project)")

    @staticmethod
    def _parse_ts(raw: str | None) -> datetime | None:
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    def _row_to_task(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Task:
        task_id = str(row["id"])
        tags = {
            r["name"]
            for r in conn.execute(
                "SELECT t.name FROM tags t JOIN task_tags tt ON t.id = tt.tag_id WHERE tt.task_id = ?",
                (task_id,),
            )
        }
        deps = {
            uuid.UUID(r["depends_on"])
            for r in conn.execute(
                "SELECT depends_on FROM dependencies WHERE task_id = ?", (task_id,)
            )
        }
        return Task(
            id=uuid.UUID(task_id),
            title=str(row["title"] or ""),
            description=row["description"],
            status=TaskStatus.from_db(row["status"]),
            priority=int(row["priority"] or 3),
            due_date=self._parse_ts(row["due_date"]),
            created_at=self._parse_ts(row["created_at"]) or utc_now(),
            updated_at=self._parse_ts(row["updated_at"]) or utc_now(),
            tags=tags,
            project=row["project"],
            recurrence_rule=row["recurrence_rule"],
            dependencies=deps,
            position=int(row["position"] or 0),
        )

    # ---- tasks ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def save_task(self, task: Task) -> None:
        """Upsert a task and replace its tag and dependency links."""
        task_id = str(task.id)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, title, description, status, priority, due_date,
                    created_at, updated_at, project, recurrence_rule, position
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    status = excluded.status,
                    priority = excluded.priority,
                    due_date = excluded.due_date,
                    created_at = excluded.created_at,
                    updated_at = excluded.updated_at,
                    project = excluded.project,
                    recurrence_rule = excluded.recurrence_rule,
                    position = excluded.position
                """,
                (
                    task_id,
                    task.title,
                    task.description,
                    task.status.value,
                    int(task.priority),
                    task.due_date.isoformat() if task.due_date else None,
                    task.created_at.isoformat(),
                    task.updated_at.isoformat(),
                    task.project,
                    task.recurrence_rule,
                    int(task.position),
                ),
            )

            conn.execute("DELETE FROM task_tags WHERE task_id = ?", (task_id,))
            for tag in sorted(task.tags):
                conn.execute("INSERT OR IGNORE INTO tags(name) VALUES (?)", (tag,))
                (tag_id,) = conn.execute("SELECT id FROM tags WHERE name = ?", (tag,)).fetchone()
                conn.execute(
                    "INSERT INTO task_tags(task_id, tag_id) VALUES (?, ?)", (task_id, int(tag_id))
                )

            conn.execute("DELETE FROM dependencies WHERE task_id = ?", (task_id,))
            for dep in sorted(str(d) for d in task.dependencies):
                conn.execute(
                    "INSERT INTO dependencies(task_id, depends_on) VALUES (?, ?)", (task_id, dep)
                )

        logger.debug("Task saved id=%s status=%s position=%s", task_id, task.status.value, task.position)

    def get_tasks(self, filter: CompiledFilter | None = None) -> list[Task]:
        """
        Return tasks ordered by position, newest first on ties.

        `filter` is the output of `query.compile_filter`: condition texts are
        joined with AND and their values bound positionally.
        """
        sql = "SELECT * FROM tasks"
        params: list[str] = []
        if filter:
            sql += " WHERE " + " AND ".join(cond for cond, _ in filter)
            params = [value for _, value in filter]
        sql += " ORDER BY position ASC, created_at DESC"

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_task(conn, r) for r in rows]

    def get_task(self, task_id: uuid.UUID) -> Task | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (str(task_id),)).fetchone()
            return self._row_to_task(conn, row) if row else None

    def delete_task(self, task_id: uuid.UUID) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM tasks WHERE id = ?", (str(task_id),))
        logger.debug("Task deleted id=%s", task_id)

    def list_projects(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT project FROM tasks
                WHERE project IS NOT NULL AND project != ''
                ORDER BY project ASC
                """
            ).fetchall()
            return [str(r["project"]) for r in rows]

    # ---- undo / redo logs ----

    def _push(self, table: str, task: Task) -> None:
        snapshot = task.to_snapshot()
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO {table}(task_id, snapshot, timestamp) VALUES (?, ?, ?)",
                (str(task.id), snapshot, utc_now().isoformat()),
            )

    def _latest(self, table: str) -> tuple[int, Task] | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT id, snapshot FROM {table} ORDER BY id DESC LIMIT 1"
            ).fetchone()
        if row is None:
            return None
        return int(row["id"]), Task.from_snapshot(row["snapshot"])

    def _delete_entry(self, table: str, entry_id: int) -> None:
        with self._connect() as conn:
            conn.execute(f"DELETE FROM {table} WHERE id = ?", (int(entry_id),))

    def _count(self, table: str) -> int:
        with self._connect() as conn:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            return int(n)

    def push_history(self, task: Task) -> None:
        self._push("history", task)

    def get_latest_history(self) -> tuple[int, Task] | None:
        return self._latest("history")

    def delete_history_entry(self, entry_id: int) -> None:
        self._delete_entry("history", entry_id)

    def count_history(self) -> int:
        return self._count("history")

    def push_redo(self, task: Task) -> None:
        self._push("redo_history", task)

    def get_latest_redo(self) -> tuple[int, Task] | None:
        return self._latest("redo_history")

    def delete_redo_entry(self, entry_id: int) -> None:
        self._delete_entry("redo_history", entry_id)

    def count_redo(self) -> int:
        return self._count("redo_history")

    def clear_redo(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM redo_history")
