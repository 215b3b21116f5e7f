# src/taskvim/errors.py

"""Exception hierarchy shared by the core, the store and the script host."""

from __future__ import annotations


class TaskVimError(Exception):
    """Base class for every error the application reports to the user."""


class StorageError(TaskVimError):
    """SQLite failure (connect, query, constraint)."""


class StorageIOError(TaskVimError):
    """Filesystem failure: data directory, script file, log file."""


class ScriptError(TaskVimError):
    """A user script or hook failed inside the Lua runtime."""


class SerializationError(TaskVimError):
    """A task snapshot could not be encoded or decoded."""


class ValidationError(TaskVimError):
    """Bad user input, e.g. an unknown field in a filter expression."""


class InternalError(TaskVimError):
    """An internal invariant does not hold."""
