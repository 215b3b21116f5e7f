# src/taskvim/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The dispatcher depends on Protocols instead of concrete implementations.
This keeps the SQLite store and the Lua host swappable and makes testing easier.
"""

import uuid
from pathlib import Path
from typing import Protocol

from ..tasks.query import CompiledFilter
from ..tasks.task_models import Task

HOOK_TASK_CREATE = "on_task_create"
HOOK_TASK_UPDATE = "on_task_update"
HOOK_STATUS_CHANGE = "on_status_change"


class TaskRepo(Protocol):
    # Tasks
    def save_task(self, task: Task) -> None: ...
    def get_tasks(self, filter: CompiledFilter | None = None) -> list[Task]: ...
    def get_task(self, task_id: uuid.UUID) -> Task | None: ...
    def delete_task(self, task_id: uuid.UUID) -> None: ...
    def list_projects(self) -> list[str]: ...

    # Undo log
    def push_history(self, task: Task) -> None: ...
    def get_latest_history(self) -> tuple[int, Task] | None: ...
    def delete_history_entry(self, entry_id: int) -> None: ...

    # Redo log
    def push_redo(self, task: Task) -> None: ...
    def get_latest_redo(self) -> tuple[int, Task] | None: ...
    def delete_redo_entry(self, entry_id: int) -> None: ...
    def clear_redo(self) -> None: ...


class ScriptHost(Protocol):
    """
    Scripting collaborator.

    Errors surface as ScriptError; the dispatcher decides whether to
    swallow them (hooks) or report them (`:lua`).
    """

    def execute(self, code: str) -> None: ...
    def load_file(self, path: Path) -> None: ...
    def invoke_hook(self, name: str, task: Task) -> None: ...


class NullScriptHost:
    """Script host used when scripting is disabled: every call is a no-op."""

    def execute(self, code: str) -> None:
        return

    def load_file(self, path: Path) -> None:
        return

    def invoke_hook(self, name: str, task: Task) -> None:
        return
