# src/taskvim/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .errors import StorageIOError

LOG_FILE_NAME = "taskvim.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUPS = 3


class _ConsoleNoiseFilter(logging.Filter):
    """Console shows taskvim records; everything else (py.warnings, lupa, ...) only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "taskvim" or record.name.startswith("taskvim."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path,
    console: bool = True,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUPS,
) -> Path:
    """
    Configure root logging and return the log file path.

    The log file rotates, so a TUI left open for weeks does not grow it
    without bound. The stderr handler is optional: the curses UI owns the
    terminal, so `taskvim` runs with console=False and everything goes to
    the file.

    Call this ONCE, before the first logger.info.
    """
    log_dir = Path(log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError(f"cannot create log directory {log_dir}: {e}") from e
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    # Re-running setup (tests, repeated main()) must not duplicate output.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        fh = RotatingFileHandler(
            str(log_file), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except OSError as e:
        raise StorageIOError(f"cannot open log file {log_file}: {e}") from e
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(console_level)
        ch.setFormatter(fmt)
        ch.addFilter(_ConsoleNoiseFilter())
        root.addHandler(ch)

    logging.captureWarnings(True)
    return log_file
