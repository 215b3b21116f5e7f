# tests/test_tui.py

from __future__ import annotations

import curses

from taskvim.connectors.tui import translate_key
from taskvim.core.keymap import KeyCombination


def test_printable_characters_keep_case() -> None:
    assert translate_key("j") == KeyCombination.char("j")
    assert translate_key("G") == KeyCombination.char("G")
    assert translate_key(" ") == KeyCombination.char(" ")


def test_control_characters() -> None:
    assert translate_key("\x04") == KeyCombination.parse("ctrl-d")
    assert translate_key("\x12") == KeyCombination.parse("ctrl-r")
    assert translate_key("\n") == KeyCombination.named("enter")
    assert translate_key("\x1b") == KeyCombination.named("esc")
    assert translate_key("\x7f") == KeyCombination.named("backspace")


def test_special_keys() -> None:
    assert translate_key(curses.KEY_UP) == KeyCombination.named("up")
    assert translate_key(curses.KEY_BACKSPACE) == KeyCombination.named("backspace")
    assert translate_key(curses.KEY_F1) is None
