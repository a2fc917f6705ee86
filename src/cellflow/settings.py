"""Tunable engine settings.

A single module-level Settings instance, read by the scheduler and the slot
installer at call time. Change it with configure(); nothing is read from the
environment.
"""

from __future__ import annotations

from dataclasses import dataclass

from cellflow.errors import InvalidArgument, message

DEFAULT_MAX_RUNS = 2000
DEFAULT_OVERFLOW_TRACE = 10


@dataclass
class Settings:
    # Maximum number of task runs in one drain before ComputedOverflowError.
    max_runs: int = DEFAULT_MAX_RUNS
    # How many trailing queue entries the overflow message lists.
    overflow_trace: int = DEFAULT_OVERFLOW_TRACE
    # Whether instances of classes defining __call__ may be observed.
    observe_callables: bool = True


current = Settings()


def configure(
    *,
    max_runs: int | None = None,
    overflow_trace: int | None = None,
    observe_callables: bool | None = None,
) -> None:
    """Update engine settings. Arguments left as None keep their value.

    Usage:
        cellflow.configure(max_runs=500)
        cellflow.configure(observe_callables=False)
    """
    # Validate everything first so a bad call changes nothing.
    if max_runs is not None and (
        isinstance(max_runs, bool) or not isinstance(max_runs, int) or max_runs < 1
    ):
        raise InvalidArgument(message(
            "Attempted to configure an invalid run ceiling",
            f"configure(max_runs=...) expects a positive int, got {max_runs!r}",
        ))
    if overflow_trace is not None and (
        isinstance(overflow_trace, bool)
        or not isinstance(overflow_trace, int)
        or overflow_trace < 0
    ):
        raise InvalidArgument(message(
            "Attempted to configure an invalid overflow trace length",
            f"configure(overflow_trace=...) expects an int >= 0, got {overflow_trace!r}",
        ))

    if max_runs is not None:
        current.max_runs = max_runs
    if overflow_trace is not None:
        current.overflow_trace = overflow_trace
    if observe_callables is not None:
        current.observe_callables = bool(observe_callables)


def reset() -> None:
    """Restore every setting to its default."""
    configure(
        max_runs=DEFAULT_MAX_RUNS,
        overflow_trace=DEFAULT_OVERFLOW_TRACE,
        observe_callables=True,
    )
