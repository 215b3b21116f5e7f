# src/taskvim/core/actions.py

"""
Closed vocabularies of the interaction state machine.

Mode is the top-level state; Action is a named user intent independent of
the key that triggered it. Action identifiers are stable strings so user
scripts can bind keys to them (`map("n", "x", "delete")`).
"""

from __future__ import annotations

from enum import Enum, StrEnum


class Mode(StrEnum):
    NORMAL = "normal"
    INSERT = "insert"
    VISUAL = "visual"
    COMMAND = "command"
    FILTER = "filter"
    STATS = "stats"
    SEARCH = "search"

    @classmethod
    def from_script_name(cls, raw: str) -> Mode | None:
        """Modes a script may bind keys in (`n`, `v`, `s` and their long names)."""
        return _SCRIPT_MODES.get((raw or "").strip().lower())


_SCRIPT_MODES: dict[str, Mode] = {
    "n": Mode.NORMAL,
    "normal": Mode.NORMAL,
    "v": Mode.VISUAL,
    "visual": Mode.VISUAL,
    "s": Mode.STATS,
    "stats": Mode.STATS,
}


class Action(Enum):
    QUIT = "quit"
    MOVE_DOWN = "move_down"
    MOVE_UP = "move_up"
    MOVE_TO_TOP = "move_top"
    MOVE_TO_BOTTOM = "move_bottom"
    PAGE_DOWN = "page_down"
    PAGE_UP = "page_up"
    DELETE = "delete"
    CYCLE_STATUS = "cycle_status"
    INCREASE_PRIORITY = "increase_priority"
    DECREASE_PRIORITY = "decrease_priority"
    ENTER_INSERT = "insert"
    ENTER_INSERT_BELOW = "insert_below"
    ENTER_INSERT_ABOVE = "insert_above"
    EDIT_TASK = "edit"
    ENTER_VISUAL = "visual"
    ENTER_COMMAND = "command"
    ENTER_FILTER = "filter"
    ENTER_SEARCH = "search"
    CANCEL = "cancel"
    UNDO = "undo"
    REDO = "redo"
    TOGGLE_COLLAPSE = "toggle_collapse"
    NEXT_PROJECT = "next_project"
    PREV_PROJECT = "prev_project"
    YANK = "yank"
    PASTE = "paste"

    @classmethod
    def parse(cls, name: str) -> Action | None:
        """Exact-match lookup; unknown identifiers give None."""
        return _ACTION_NAMES.get(name)


_ACTION_NAMES: dict[str, Action] = {a.value: a for a in Action}
_ACTION_NAMES.update(
    {
        "delete_task": Action.DELETE,
        "add_below": Action.ENTER_INSERT_BELOW,
        "add_above": Action.ENTER_INSERT_ABOVE,
        "rename": Action.EDIT_TASK,
    }
)


class InsertAction(Enum):
    ADD_END = "add_end"
    ADD_BELOW = "add_below"
    ADD_ABOVE = "add_above"
    EDIT = "edit"


class SortKey(StrEnum):
    POSITION = "position"
    PRIORITY = "priority"
    CREATED_AT = "created"

    @classmethod
    def parse(cls, raw: str) -> SortKey | None:
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return None


class PendingPrefix(Enum):
    """First key of a two-key sequence (gg, gt, gT, za, yy, q<reg>, @<reg>)."""

    NONE = None
    G = "g"
    Z = "z"
    Y = "y"
    AT = "@"
    Q = "q"


PREFIX_KEYS: frozenset[str] = frozenset(p.value for p in PendingPrefix if p.value)
