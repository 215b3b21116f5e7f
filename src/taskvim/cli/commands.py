# src/taskvim/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..core.actions import Mode, SortKey

if TYPE_CHECKING:
    from ..core.state import AppState

CommandHandler = Callable[["AppState", str], "str | None"]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """
    Colon-command registry (`:q`, `:sort priority`, `:filter status=todo`, ...).

    The first word selects the handler by exact name; the rest of the line is
    passed through untouched so filter expressions and Lua code keep their
    spacing. Unknown commands are ignored.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a line like "sort priority" (without the leading colon).
        Returns a message for the status line, or None.
        """
        text = line.strip()
        if text.startswith(":"):
            text = text[1:].lstrip()
        if not text:
            return None

        name, _, rest = text.partition(" ")
        handler = self._handlers.get(name.lower())
        if handler is None:
            logger.debug("Ignoring unknown command %r", name)
            return None
        return handler(state, rest.strip())

    def names(self) -> list[str]:
        return list(self._help)

    def build_help(self) -> str:
        return "  ".join(f":{name} - {text}" for name, text in self._help.items())


registry = CommandRegistry()


def cmd_quit(state: AppState, args: str) -> str | None:
    state.running = False
    return None


def cmd_write(state: AppState, args: str) -> str | None:
    # Every mutation is persisted as it happens.
    return None


def cmd_sort(state: AppState, args: str) -> str | None:
    """
    :sort priority   -> highest priority first
    :sort created    -> oldest first
    :sort position   -> manual order
    """
    key = SortKey.parse(args)
    if key is None:
        return None
    state.set_sort(key)
    return f"sorted by {key.value}"


def cmd_stats(state: AppState, args: str) -> str | None:
    state.mode = Mode.STATS
    return None


def cmd_filter(state: AppState, args: str) -> str | None:
    """
    :filter <expr>   -> apply filter (previous filter kept if <expr> is invalid)
    :filter          -> clear filter
    """
    state.apply_filter(args)
    return f"filter: {state.filter_string}" if state.filter_string else "filter cleared"


def cmd_lua(state: AppState, args: str) -> str | None:
    if not args:
        return None
    state.script_host.execute(args)
    return None


def cmd_nosearch(state: AppState, args: str) -> str | None:
    state.set_search("")
    return None


def cmd_help(state: AppState, args: str) -> str | None:
    return state.commands.build_help()


registry.register("q", cmd_quit, help_text="Quit.", aliases=["quit", "wq", "x"])
registry.register("w", cmd_write, help_text="Write (no-op, changes are saved immediately).")
registry.register("sort", cmd_sort, help_text="Sort: priority | created | position.")
registry.register("stats", cmd_stats, help_text="Show task statistics.")
registry.register("filter", cmd_filter, help_text="Filter tasks, e.g. status=todo priority>=3.")
registry.register("lua", cmd_lua, help_text="Run Lua code in the script host.")
registry.register("nohl", cmd_nosearch, help_text="Clear the search.", aliases=["nosearch"])
registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h"])
