# src/taskvim/cli/main.py

"""
CLI entrypoint.

Resolves settings (env + .env + command-line overrides), initializes
logging to the log file, builds AppState, then hands the terminal to the
curses UI until the user quits.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.tui import run_tui
from ..errors import TaskVimError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskvim", description="Modal terminal task manager.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database file.")
    parser.add_argument(
        "--no-scripts",
        action="store_true",
        help="Do not load the Lua init script (disables :lua and hooks).",
    )
    parser.add_argument("--log-level", default=None, help="File log level (DEBUG, INFO, ...).")
    return parser


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # TaskStore uses short-lived sqlite connections per call; close() is a no-op hook.
    try:
        store = getattr(state, "store", None)
        if store is not None and hasattr(store, "close"):
            store.close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    settings = get_settings().with_overrides(
        db_path=args.db.expanduser() if args.db else None,
        log_level=args.log_level,
        scripting_enabled=False if args.no_scripts else None,
    )

    level_name = str(settings.log_level).upper()
    file_level = getattr(logging, level_name, logging.INFO)

    # curses owns the terminal: logs go to the file only.
    log_file = setup_logging(log_dir=settings.log_dir, console=False, file_level=file_level)

    logger.info("Starting %s (db=%s, log=%s)...", settings.app_name, settings.db_path, log_file)

    try:
        state = create_initial_state(settings=settings)
    except TaskVimError as e:
        logger.exception("Startup failed.")
        print(f"taskvim: {e}", file=sys.stderr)
        return 1

    try:
        run_tui(state)
    finally:
        _shutdown(state)
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
