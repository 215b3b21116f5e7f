# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskvim.core.options import Options
from taskvim.core.state import AppState
from taskvim.tasks.task_store import TaskStore

from .fakes import FakeScriptHost


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and Options.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="taskvim-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "tasks.sqlite3",
        log_dir=tmp_path / "logs",
        config_dir=tmp_path / "config",
        init_script=tmp_path / "config" / "init.lua",
        scripting_enabled=False,
        default_priority=3,
        page_size=10,
        macro_depth=10,
    )


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def script_host() -> FakeScriptHost:
    return FakeScriptHost()


@pytest.fixture()
def state(store: TaskStore, script_host: FakeScriptHost, settings: SimpleNamespace) -> AppState:
    """
    AppState wired with a recording script host.

    NOTE: We keep a real SQLite store here because ordering, positions and
    the undo logs are part of what we want to test.
    """
    return AppState(store, options=Options.from_settings(settings), script_host=script_host)
