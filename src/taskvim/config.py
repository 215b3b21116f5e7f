# src/taskvim/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, resolved once at startup.
- Paths (database, logs, user script) are decided here and passed on
  explicitly; nothing else looks them up.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKVIM"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _xdg_dir(var: str, fallback: str) -> Path:
    raw = os.getenv(var)
    base = Path(raw).expanduser() if raw and raw.strip() else Path(fallback).expanduser()
    return base / "taskvim"


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    db_path: Path
    log_dir: Path
    config_dir: Path
    init_script: Path

    # ---- Scripting ----
    scripting_enabled: bool

    # ---- Editing defaults (scripts may override at runtime) ----
    default_priority: int
    page_size: int
    macro_depth: int

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "taskvim")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), _xdg_dir("XDG_DATA_HOME", "~/.local/share"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "tasks.sqlite3")
        log_dir = _env_path(_k("LOG_DIR"), data_dir)
        config_dir = _env_path(_k("CONFIG_DIR"), _xdg_dir("XDG_CONFIG_HOME", "~/.config"))
        init_script = _env_path(_k("INIT_SCRIPT"), config_dir / "init.lua")

        scripting_enabled = _env_bool(_k("SCRIPTING"), True)

        default_priority = _env_int(_k("DEFAULT_PRIORITY"), 3)
        page_size = _env_int(_k("PAGE_SIZE"), 10)
        macro_depth = _env_int(_k("MACRO_DEPTH"), 10)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            log_dir=log_dir,
            config_dir=config_dir,
            init_script=init_script,
            scripting_enabled=scripting_enabled,
            default_priority=default_priority,
            page_size=page_size,
            macro_depth=macro_depth,
        )

    def with_overrides(self, **changes) -> Settings:
        """Copy with CLI overrides applied (None values are ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
