# src/taskvim/connectors/tui.py

from __future__ import annotations

import contextlib
import curses
import logging

from ..core.actions import Mode
from ..core.keymap import KeyCombination
from ..core.state import AppState
from ..errors import TaskVimError
from ..tasks.task_models import TaskStatus

logger = logging.getLogger(__name__)

POLL_TIMEOUT_MS = 100

_SPECIAL_KEYS: dict[int, KeyCombination] = {
    curses.KEY_UP: KeyCombination.named("up"),
    curses.KEY_DOWN: KeyCombination.named("down"),
    curses.KEY_LEFT: KeyCombination.named("left"),
    curses.KEY_RIGHT: KeyCombination.named("right"),
    curses.KEY_ENTER: KeyCombination.named("enter"),
    curses.KEY_BACKSPACE: KeyCombination.named("backspace"),
    curses.KEY_DC: KeyCombination.named("backspace"),
}

_CONTROL_CHARS: dict[str, KeyCombination] = {
    "\n": KeyCombination.named("enter"),
    "\r": KeyCombination.named("enter"),
    "\x1b": KeyCombination.named("esc"),
    "\x7f": KeyCombination.named("backspace"),
    "\b": KeyCombination.named("backspace"),
    "\t": KeyCombination.named("tab"),
}

_STATUS_ATTR_PAIRS: dict[TaskStatus, int] = {
    TaskStatus.TODO: 1,
    TaskStatus.DOING: 2,
    TaskStatus.DONE: 3,
    TaskStatus.ARCHIVED: 4,
}

SIDEBAR_WIDTH = 18
HEADER_PAIR = 5

# Header colour per `set.theme(...)` name; unknown names fall back to "default".
_THEME_COLORS: dict[str, int] = {
    "default": curses.COLOR_CYAN,
    "gruvbox": curses.COLOR_YELLOW,
    "nord": curses.COLOR_BLUE,
    "solarized": curses.COLOR_GREEN,
    "dracula": curses.COLOR_MAGENTA,
}


def translate_key(key: int | str) -> KeyCombination | None:
    """Map a curses `get_wch()` result to a KeyCombination (None for keys we ignore)."""
    if isinstance(key, int):
        return _SPECIAL_KEYS.get(key)
    if key in _CONTROL_CHARS:
        return _CONTROL_CHARS[key]
    code = ord(key)
    if 1 <= code <= 26:
        return KeyCombination(code=chr(ord("a") + code - 1), modifiers=frozenset({"ctrl"}))
    if key.isprintable():
        return KeyCombination.char(key)
    return None


class TaskListView:
    """Draws the task table, the project sidebar, the stats page and the status line."""

    def __init__(self, stdscr) -> None:
        self.stdscr = stdscr
        self.top = 0
        self.theme: str | None = None
        self.has_colors = curses.has_colors()
        self.bg = curses.COLOR_BLACK
        if self.has_colors:
            curses.start_color()
            try:
                curses.use_default_colors()
                self.bg = -1
            except curses.error:
                pass
            curses.init_pair(1, curses.COLOR_WHITE, self.bg)
            curses.init_pair(2, curses.COLOR_YELLOW, self.bg)
            curses.init_pair(3, curses.COLOR_GREEN, self.bg)
            curses.init_pair(4, curses.COLOR_BLUE, self.bg)

    def _apply_theme(self, theme: str) -> None:
        if not self.has_colors or theme == self.theme:
            return
        color = _THEME_COLORS.get(theme, _THEME_COLORS["default"])
        curses.init_pair(HEADER_PAIR, color, self.bg)
        self.theme = theme

    def _header_attr(self) -> int:
        attr = curses.A_BOLD
        if self.has_colors:
            attr |= curses.color_pair(HEADER_PAIR)
        return attr

    def _status_attr(self, status: TaskStatus) -> int:
        if not self.has_colors:
            return curses.A_NORMAL
        return curses.color_pair(_STATUS_ATTR_PAIRS[status])

    def draw(self, state: AppState) -> None:
        self._apply_theme(state.options.theme)
        self.stdscr.erase()
        height, width = self.stdscr.getmaxyx()
        if state.mode is Mode.STATS:
            self._draw_stats(state, width)
        else:
            left = 0
            if state.options.show_sidebar and width > SIDEBAR_WIDTH * 3:
                self._draw_sidebar(state, height)
                left = SIDEBAR_WIDTH + 1
            self._draw_tasks(state, height, left, width - left)
        self._draw_status_line(state, height, width)
        self.stdscr.refresh()

    def _draw_stats(self, state: AppState, width: int) -> None:
        self.stdscr.addnstr(0, 0, " Statistics ", width - 1, self._header_attr())
        for i, line in enumerate(state.stats().lines(), start=2):
            self.stdscr.addnstr(i, 2, line, width - 3)

    def _draw_sidebar(self, state: AppState, height: int) -> None:
        self.stdscr.addnstr(0, 0, " Projects ", SIDEBAR_WIDTH, self._header_attr())
        current = state.selected_task.project if state.selected_task else None
        for row, name in enumerate(state.projects[: max(0, height - 3)], start=2):
            marker = "+" if name in state.collapsed_projects else " "
            attr = curses.A_BOLD if name == current else curses.A_NORMAL
            self.stdscr.addnstr(row, 0, f"{marker}{name}", SIDEBAR_WIDTH, attr)
        for row in range(height - 1):
            self.stdscr.addch(row, SIDEBAR_WIDTH, curses.ACS_VLINE)

    def _draw_tasks(self, state: AppState, height: int, left: int, width: int) -> None:
        title = " TaskVim "
        if state.filter_string:
            title += f"[{state.filter_string}] "
        if state.search_query:
            title += f"/{state.search_query} "
        self.stdscr.addnstr(0, left, title, width - 1, self._header_attr())
        header = f"{'ID':<10}{'Status':<10}{'Pri':<5}{'Title':<40}Project"
        self.stdscr.addnstr(1, left, header, width - 1, curses.A_UNDERLINE)

        rows = max(1, height - 3)
        if state.selected_index < self.top:
            self.top = state.selected_index
        elif state.selected_index >= self.top + rows:
            self.top = state.selected_index - rows + 1

        visual = state.visual_range
        for row, idx in enumerate(range(self.top, min(len(state.tasks), self.top + rows))):
            task = state.tasks[idx]
            selected = idx == state.selected_index or (
                visual is not None and visual[0] <= idx <= visual[1]
            )
            attr = self._status_attr(task.status)
            if selected:
                attr |= curses.A_REVERSE | curses.A_BOLD
            line = (
                f"{str(task.id)[:8]:<10}{task.status.label:<10}{task.priority:<5}"
                f"{task.title[:38]:<40}{task.project or '-'}"
            )
            self.stdscr.addnstr(2 + row, left, line, width - 1, attr)

    def _draw_status_line(self, state: AppState, height: int, width: int) -> None:
        match state.mode:
            case Mode.NORMAL:
                text = "-- NORMAL --"
            case Mode.INSERT:
                text = f"-- INSERT -- {state.command_buffer}"
            case Mode.VISUAL:
                text = "-- VISUAL --"
            case Mode.COMMAND:
                text = f":{state.command_buffer}"
            case Mode.FILTER:
                text = f"-- FILTER -- {state.command_buffer}"
            case Mode.SEARCH:
                text = f"/{state.command_buffer}"
            case Mode.STATS:
                text = "-- STATS --"
        if state.macros.recording:
            text += f"  recording @{state.macros.recording}"
        if state.message and state.mode in (Mode.NORMAL, Mode.VISUAL, Mode.STATS):
            text += f"  {state.message}"
        self.stdscr.addnstr(height - 1, 0, text, width - 1)


def _loop(stdscr, state: AppState) -> None:
    curses.set_escdelay(25)
    curses.curs_set(0)
    curses.raw()
    stdscr.keypad(True)
    stdscr.timeout(POLL_TIMEOUT_MS)
    view = TaskListView(stdscr)

    while state.running:
        with contextlib.suppress(curses.error):
            # Terminal too small for the layout.
            view.draw(state)
        try:
            key = stdscr.get_wch()
        except curses.error:
            # Timeout: nothing typed.
            continue
        if key == curses.KEY_RESIZE:
            continue

        combo = translate_key(key)
        if combo is None:
            continue
        try:
            state.handle_key(combo)
        except TaskVimError as e:
            logger.warning("Key %s failed: %s", combo, e)
            state.message = f"error: {e}"


def run_tui(state: AppState) -> None:
    logger.info("TUI started (tasks=%d).", len(state.tasks))
    curses.wrapper(_loop, state)
    logger.info("TUI finished.")
