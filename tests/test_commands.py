# tests/test_commands.py

from __future__ import annotations

import pytest

from taskvim.cli.commands import CommandRegistry
from taskvim.core.actions import Mode, SortKey
from taskvim.errors import ValidationError


def test_command_registry_routes_by_first_word_and_aliases(state) -> None:
    reg = CommandRegistry()
    calls: list[str] = []

    def echo(state, args):
        calls.append(args)
        return f"echo {args}"

    reg.register("echo", echo, "Echo arguments.", aliases=["e"])

    assert reg.handle(state, ":echo  a   b ") == "echo a   b"
    assert reg.handle(state, "e x") == "echo x"
    assert calls == ["a   b", "x"]
    assert reg.names() == ["echo"]


def test_command_registry_unknown_and_empty(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "nope") is None
    assert reg.handle(state, ":") is None
    assert reg.handle(state, "") is None


def test_quit_aliases(state) -> None:
    for name in ("q", "quit", "wq", "x"):
        state.running = True
        state.execute_command(name)
        assert state.running is False


def test_write_is_noop(state) -> None:
    state.execute_command("w")
    assert state.running is True
    assert state.message is None


def test_sort_command(state) -> None:
    state.execute_command("sort priority")
    assert state.sort_key is SortKey.PRIORITY
    assert state.message == "sorted by priority"

    state.message = None
    state.execute_command("sort sideways")
    assert state.sort_key is SortKey.PRIORITY
    assert state.message is None


def test_filter_command(state) -> None:
    state.execute_command("filter status=todo priority>=2")
    assert state.filter_string == "status=todo priority>=2"
    assert state.message == "filter: status=todo priority>=2"

    state.execute_command("filter")
    assert state.filter_string is None
    assert state.message == "filter cleared"


def test_invalid_filter_command_raises_and_keeps_filter(state) -> None:
    state.execute_command("filter status=done")
    with pytest.raises(ValidationError):
        state.execute_command("filter tag=x")
    assert state.filter_string == "status=done"


def test_lua_command_goes_to_script_host(state, script_host) -> None:
    state.execute_command('lua set.theme("nord")')
    state.execute_command("lua")
    assert script_host.executed == ['set.theme("nord")']


def test_stats_and_help(state) -> None:
    state.execute_command("stats")
    assert state.mode is Mode.STATS

    state.execute_command("help")
    assert ":sort" in (state.message or "")
    assert ":filter" in (state.message or "")
