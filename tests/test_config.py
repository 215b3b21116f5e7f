# tests/test_config.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from taskvim.cli.bootstrap import create_initial_state
from taskvim.cli.main import _build_parser
from taskvim.config import Settings
from taskvim.core.options import Options
from taskvim.core.ports import NullScriptHost
from taskvim.logging_setup import setup_logging
from taskvim.scripting.lua_host import LuaScriptHost

_VARS = (
    "APP_NAME",
    "LOG_LEVEL",
    "DATA_DIR",
    "DB_PATH",
    "LOG_DIR",
    "CONFIG_DIR",
    "INIT_SCRIPT",
    "SCRIPTING",
    "DEFAULT_PRIORITY",
    "PAGE_SIZE",
    "MACRO_DEPTH",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(f"TASKVIM_{name}", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "share"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    return monkeypatch


def test_defaults_follow_xdg_dirs(clean_env, tmp_path: Path) -> None:
    s = Settings.from_env()

    assert s.data_dir == tmp_path / "share" / "taskvim"
    assert s.db_path == s.data_dir / "tasks.sqlite3"
    assert s.log_dir == s.data_dir
    assert s.init_script == tmp_path / "config" / "taskvim" / "init.lua"
    assert s.scripting_enabled is True
    assert (s.default_priority, s.page_size, s.macro_depth) == (3, 10, 10)


def test_env_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("TASKVIM_DB_PATH", str(tmp_path / "elsewhere.db"))
    clean_env.setenv("TASKVIM_SCRIPTING", "off")
    clean_env.setenv("TASKVIM_PAGE_SIZE", "25")
    clean_env.setenv("TASKVIM_MACRO_DEPTH", "not-a-number")

    s = Settings.from_env()

    assert s.db_path == tmp_path / "elsewhere.db"
    assert s.scripting_enabled is False
    assert s.page_size == 25
    assert s.macro_depth == 10


def test_with_overrides_ignores_none(clean_env, tmp_path: Path) -> None:
    s = Settings.from_env()
    changed = s.with_overrides(db_path=tmp_path / "x.db", log_level=None)

    assert changed.db_path == tmp_path / "x.db"
    assert changed.log_level == s.log_level


def test_cli_arguments() -> None:
    args = _build_parser().parse_args(["--db", "~/t.db", "--no-scripts", "--log-level", "debug"])
    assert args.db == Path("~/t.db")
    assert args.no_scripts is True
    assert args.log_level == "debug"


def test_options_from_settings_clamps(settings) -> None:
    settings.default_priority = 42
    settings.page_size = 0
    opts = Options.from_settings(settings)

    assert opts.default_priority == 5
    assert opts.page_size == 1


def test_apply_setting_rejects_unknown_and_bad_values() -> None:
    opts = Options()
    assert opts.apply_setting("page_size", "12") is True
    assert opts.page_size == 12
    assert opts.apply_setting("page_size", "many") is False
    assert opts.apply_setting("colour", "red") is False
    assert opts.page_size == 12


def test_bootstrap_without_scripting(settings) -> None:
    state = create_initial_state(settings=settings)

    assert isinstance(state.script_host, NullScriptHost)
    assert settings.db_path.exists()
    assert state.tasks == []


def test_bootstrap_runs_init_script(settings) -> None:
    settings.scripting_enabled = True
    settings.config_dir.mkdir(parents=True)
    settings.init_script.write_text('set.page_size(25)\nmap("n", "x", "delete")\n', encoding="utf-8")

    state = create_initial_state(settings=settings)

    assert isinstance(state.script_host, LuaScriptHost)
    assert state.options.page_size == 25


def test_bootstrap_survives_broken_init_script(settings, caplog) -> None:
    settings.scripting_enabled = True
    settings.config_dir.mkdir(parents=True)
    settings.init_script.write_text("this is not lua", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="taskvim.cli.bootstrap"):
        state = create_initial_state(settings=settings)

    assert state.running is True
    assert "Failed to run init script" in caplog.text


def test_setup_logging_writes_to_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs", console=False)
        logging.getLogger("taskvim.test").info("hello %s", "file")
        for h in root.handlers:
            h.flush()

        assert log_file == tmp_path / "logs" / "taskvim.log"
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
