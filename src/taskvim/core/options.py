# src/taskvim/core/options.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_models import DEFAULT_PRIORITY, clamp_priority
from .keymap import Keymap

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
DEFAULT_MACRO_DEPTH = 10


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass(slots=True)
class Options:
    """
    Runtime options a user script may change.

    This is the capability surface the script host calls into:
    `apply_setting` and `register_keybinding`. Startup values come from
    Settings; scripts run afterwards and override them.
    """

    theme: str = "default"
    default_priority: int = DEFAULT_PRIORITY
    show_sidebar: bool = True
    page_size: int = DEFAULT_PAGE_SIZE
    macro_depth: int = DEFAULT_MACRO_DEPTH
    keymap: Keymap = field(default_factory=Keymap)

    @classmethod
    def from_settings(cls, settings: Any) -> Options:
        return cls(
            default_priority=clamp_priority(getattr(settings, "default_priority", DEFAULT_PRIORITY)),
            page_size=max(1, int(getattr(settings, "page_size", DEFAULT_PAGE_SIZE))),
            macro_depth=max(1, int(getattr(settings, "macro_depth", DEFAULT_MACRO_DEPTH))),
        )

    def apply_setting(self, key: str, value: Any) -> bool:
        """Returns False for unknown keys or values that cannot be converted."""
        name = (key or "").strip().lower()
        try:
            if name == "theme":
                self.theme = str(value)
            elif name == "default_priority":
                self.default_priority = clamp_priority(int(value))
            elif name in ("sidebar", "show_sidebar"):
                self.show_sidebar = _as_bool(value)
            elif name == "page_size":
                self.page_size = max(1, int(value))
            elif name in ("macro_depth", "max_macro_depth"):
                self.macro_depth = max(1, int(value))
            else:
                logger.warning("Unknown setting %r", key)
                return False
        except (TypeError, ValueError):
            logger.warning("Bad value for setting %s: %r", key, value)
            return False
        logger.debug("Setting %s = %r", name, value)
        return True

    def register_keybinding(self, mode: str, key: str, action: str) -> bool:
        return self.keymap.bind_notation(mode, key, action)
