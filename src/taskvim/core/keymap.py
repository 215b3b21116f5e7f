# src/taskvim/core/keymap.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import InternalError
from .actions import Action, Mode

logger = logging.getLogger(__name__)

MODIFIERS: frozenset[str] = frozenset({"ctrl", "alt", "shift"})

_MODIFIER_ALIASES: dict[str, str] = {
    "ctrl": "ctrl",
    "c": "ctrl",
    "alt": "alt",
    "a": "alt",
    "shift": "shift",
    "s": "shift",
}

NAMED_KEYS: frozenset[str] = frozenset(
    {"enter", "esc", "backspace", "tab", "up", "down", "left", "right"}
)


@dataclass(frozen=True, slots=True)
class KeyCombination:
    """
    A key code plus a modifier set.

    `code` is either a single character (case preserved, "G" != "g") or one
    of NAMED_KEYS. Space is the character " ".
    """

    code: str
    modifiers: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def char(cls, c: str) -> KeyCombination:
        return cls(code=c)

    @classmethod
    def named(cls, name: str, *modifiers: str) -> KeyCombination:
        return cls(code=name, modifiers=frozenset(modifiers))

    @classmethod
    def parse(cls, notation: str) -> KeyCombination | None:
        """
        Parse short notation: "j", "G", "-", "enter", "ctrl-d", "c-r", "alt-shift-x".

        Returns None when the key part is not recognised.
        """
        if not notation:
            return None
        if notation == "-":
            return cls(code="-")

        parts = notation.split("-")
        modifiers: set[str] = set()
        for raw in parts[:-1]:
            mod = _MODIFIER_ALIASES.get(raw.lower())
            if mod is not None:
                modifiers.add(mod)
        key = parts[-1]
        if not key:
            # "ctrl--" style: the key itself is "-"
            if notation.endswith("--"):
                key = "-"
            else:
                return None

        lowered = key.lower()
        if lowered in NAMED_KEYS:
            code = lowered
        elif lowered == "space":
            code = " "
        elif len(key) == 1:
            code = key
        else:
            return None
        return cls(code=code, modifiers=frozenset(modifiers))

    @property
    def is_plain_char(self) -> bool:
        return not self.modifiers and len(self.code) == 1

    def __str__(self) -> str:
        code = "space" if self.code == " " else self.code
        mods = [m for m in ("ctrl", "alt", "shift") if m in self.modifiers]
        return "-".join([*mods, code])


_NORMAL_DEFAULTS: tuple[tuple[str, Action], ...] = (
    ("j", Action.MOVE_DOWN),
    ("k", Action.MOVE_UP),
    ("down", Action.MOVE_DOWN),
    ("up", Action.MOVE_UP),
    ("G", Action.MOVE_TO_BOTTOM),
    ("ctrl-d", Action.PAGE_DOWN),
    ("ctrl-u", Action.PAGE_UP),
    ("i", Action.ENTER_INSERT),
    ("o", Action.ENTER_INSERT_BELOW),
    ("O", Action.ENTER_INSERT_ABOVE),
    ("r", Action.EDIT_TASK),
    ("d", Action.DELETE),
    ("v", Action.ENTER_VISUAL),
    (":", Action.ENTER_COMMAND),
    ("/", Action.ENTER_SEARCH),
    ("F", Action.ENTER_FILTER),
    ("enter", Action.CYCLE_STATUS),
    ("+", Action.INCREASE_PRIORITY),
    ("-", Action.DECREASE_PRIORITY),
    ("u", Action.UNDO),
    ("ctrl-r", Action.REDO),
    ("p", Action.PASTE),
    ("ctrl-c", Action.QUIT),
)

_VISUAL_DEFAULTS: tuple[tuple[str, Action], ...] = (
    ("j", Action.MOVE_DOWN),
    ("k", Action.MOVE_UP),
    ("down", Action.MOVE_DOWN),
    ("up", Action.MOVE_UP),
    ("d", Action.DELETE),
    ("esc", Action.CANCEL),
)

_STATS_DEFAULTS: tuple[tuple[str, Action], ...] = (
    ("q", Action.CANCEL),
    ("esc", Action.CANCEL),
)


class Keymap:
    """
    (Mode, KeyCombination) -> Action.

    Prefix keys (g z y q @) are left unbound in Normal mode: they are
    interpreted by the dispatcher's pending-prefix fallback.
    """

    def __init__(self, *, defaults: bool = True) -> None:
        self._bindings: dict[tuple[Mode, KeyCombination], Action] = {}
        if defaults:
            self._add_defaults()

    def _add_defaults(self) -> None:
        for mode, table in (
            (Mode.NORMAL, _NORMAL_DEFAULTS),
            (Mode.VISUAL, _VISUAL_DEFAULTS),
            (Mode.STATS, _STATS_DEFAULTS),
        ):
            for notation, action in table:
                combo = KeyCombination.parse(notation)
                if combo is None:
                    raise InternalError(f"bad default keybinding: {notation}")
                self._bindings[(mode, combo)] = action

    def resolve(self, mode: Mode, combo: KeyCombination) -> Action | None:
        return self._bindings.get((mode, combo))

    def bind(self, mode: Mode, combo: KeyCombination, action: Action) -> None:
        self._bindings[(mode, combo)] = action

    def unbind(self, mode: Mode, combo: KeyCombination) -> None:
        self._bindings.pop((mode, combo), None)

    def bind_notation(self, mode_name: str, key: str, action_name: str) -> bool:
        """Script-facing bind; returns False (and changes nothing) on any unknown part."""
        mode = Mode.from_script_name(mode_name)
        combo = KeyCombination.parse(key)
        action = Action.parse(action_name)
        if mode is None or combo is None or action is None:
            logger.warning(
                "Ignoring keybinding mode=%r key=%r action=%r", mode_name, key, action_name
            )
            return False
        self.bind(mode, combo, action)
        logger.debug("Keybinding %s %s -> %s", mode.value, combo, action.value)
        return True

    def bindings(self, mode: Mode) -> dict[KeyCombination, Action]:
        return {combo: a for (m, combo), a in self._bindings.items() if m is mode}

    def copy(self) -> Keymap:
        other = Keymap(defaults=False)
        other._bindings = dict(self._bindings)
        return other
