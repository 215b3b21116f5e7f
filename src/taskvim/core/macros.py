# src/taskvim/core/macros.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator

from .keymap import KeyCombination

logger = logging.getLogger(__name__)


class MacroRecorder:
    """
    Key-event macros.

    Registers hold raw KeyCombinations, replayed through the same
    resolve -> dispatch path as live input. Registers live only in memory.

    Replay depth is bounded: a macro that plays itself (directly or through
    another register) stops at `max_depth` nested playbacks.
    """

    def __init__(self, max_depth: int = 10) -> None:
        self.registers: dict[str, list[KeyCombination]] = {}
        self.recording: str | None = None
        self.last_played: str | None = None
        self.max_depth = max(1, int(max_depth))
        self._depth = 0

    @property
    def is_recording(self) -> bool:
        return self.recording is not None

    @property
    def is_replaying(self) -> bool:
        return self._depth > 0

    def start(self, register: str) -> None:
        self.registers[register] = []
        self.recording = register
        logger.debug("Macro recording started register=%s", register)

    def stop(self) -> None:
        if self.recording is None:
            return
        logger.debug(
            "Macro recording stopped register=%s events=%d",
            self.recording,
            len(self.registers.get(self.recording, [])),
        )
        self.recording = None

    def record(self, combo: KeyCombination) -> None:
        if self.recording is not None:
            self.registers.setdefault(self.recording, []).append(combo)

    @contextlib.contextmanager
    def playback(self, register: str) -> Iterator[list[KeyCombination]]:
        """
        Yield a copy of the register's events (empty when unknown or too deep).

        The copy matters: replaying may re-record into the same register.
        """
        if self._depth >= self.max_depth:
            logger.warning("Macro @%s not played: replay depth %d reached", register, self.max_depth)
            yield []
            return

        events = list(self.registers.get(register, []))
        self.last_played = register
        self._depth += 1
        try:
            yield events
        finally:
            self._depth -= 1
