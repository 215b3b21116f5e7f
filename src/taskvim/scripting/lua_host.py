# src/taskvim/scripting/lua_host.py

"""
Lua scripting host (lupa).

Scripts see a narrow API:

    set.theme("gruvbox")
    set.default_priority(4)
    set.sidebar(false)
    set.page_size(20)
    set.option("macro_depth", 5)
    map("n", "x", "delete")

    function on_status_change(task)
        print(task.title .. " -> " .. task.status)
    end

Hooks are plain globals named after the events (`on_task_create`,
`on_task_update`, `on_status_change`) and receive a table of task fields.
`print` goes to the log, never to the terminal.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import lupa
from lupa import LuaError, LuaRuntime

from ..core.options import Options
from ..errors import ScriptError, StorageIOError
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


class LuaScriptHost:
    def __init__(self, options: Options) -> None:
        self._options = options
        self._lua = LuaRuntime(unpack_returned_tuples=True)
        self._install_api()

    def _install_api(self) -> None:
        g = self._lua.globals()
        options = self._options

        def setter(key: str):
            return lambda value: options.apply_setting(key, value)

        g["set"] = self._lua.table_from(
            {
                "theme": setter("theme"),
                "default_priority": setter("default_priority"),
                "sidebar": setter("sidebar"),
                "page_size": setter("page_size"),
                "macro_depth": setter("macro_depth"),
                "option": lambda key, value: options.apply_setting(str(key), value),
            }
        )
        g["map"] = lambda mode, key, action: options.register_keybinding(
            str(mode), str(key), str(action)
        )
        g["print"] = self._print

    @staticmethod
    def _print(*args: Any) -> None:
        logger.info("[lua] %s", " ".join(str(a) for a in args))

    def execute(self, code: str) -> None:
        try:
            self._lua.execute(code)
        except LuaError as e:
            raise ScriptError(str(e)) from e

    def load_file(self, path: Path) -> None:
        path = Path(path)
        try:
            code = path.read_text("utf-8")
        except OSError as e:
            raise StorageIOError(f"cannot read {path}: {e}") from e
        try:
            self._lua.execute(code)
        except LuaError as e:
            raise ScriptError(f"{path}: {e}") from e
        logger.info("Loaded user script %s", path)

    def invoke_hook(self, name: str, task: Task) -> None:
        fn = self._lua.globals()[name]
        if fn is None or lupa.lua_type(fn) != "function":
            return
        try:
            fn(self._lua.table_from(task.to_dict(), recursive=True))
        except LuaError as e:
            raise ScriptError(f"{name}: {e}") from e
