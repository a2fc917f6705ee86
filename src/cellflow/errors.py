"""Exceptions raised by the reactive engine.

Every public entry point validates its arguments before touching any state,
so an InvalidArgument or NoActiveTask never leaves partial side effects.
"""

from __future__ import annotations


def describe(value: object) -> str:
    """Short human-readable name for a task or value, used in messages."""
    name = getattr(value, "__qualname__", None) or getattr(value, "__name__", None)
    if isinstance(name, str) and name:
        return name
    if callable(value):
        return f"<{type(value).__qualname__} instance>"
    return repr(value)


def message(header: str, body: str) -> str:
    return f"{header}\n{body}"


class ReactivityError(Exception):
    """Base class for all cellflow errors."""


class InvalidArgument(ReactivityError, TypeError):
    """A public function received a value of the wrong kind."""


class NoActiveTask(ReactivityError, RuntimeError):
    """dispose() was called without a task outside of any running task."""


class ComputedOverflowError(ReactivityError, OverflowError):
    """A single drain ran more tasks than allowed (presumed dependency cycle)."""
