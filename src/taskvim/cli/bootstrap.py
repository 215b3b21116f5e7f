# src/taskvim/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes the settings resolved once at startup,
- ensures the local data directory exists,
- wires the SQLite store, runtime options and the script host into AppState,
- runs the user's init script before the first key is read.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.options import Options
from ..core.ports import NullScriptHost, ScriptHost
from ..core.state import AppState
from ..errors import ScriptError, StorageIOError
from ..scripting.lua_host import LuaScriptHost
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError(f"cannot create data directory: {e}") from e


def create_script_host(settings, options: Options) -> ScriptHost:
    """
    Build the script host and run the init script.

    A broken init script is logged and skipped: the app still starts with
    default options.
    """
    if not settings.scripting_enabled:
        return NullScriptHost()

    host = LuaScriptHost(options)
    init_script = settings.init_script
    if init_script.exists():
        try:
            host.load_file(init_script)
        except (ScriptError, StorageIOError):
            logger.exception("Failed to run init script %s", init_script)
    return host


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    options = Options.from_settings(settings)
    script_host = create_script_host(settings, options)
    store = TaskStore(settings.db_path)

    return AppState(store, options=options, script_host=script_host)
