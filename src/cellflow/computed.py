"""computed(): register a task and run it now.

A task is a zero-argument callable. Running it through computed() records
every reactive attribute it reads; assigning any of them later re-runs the
task, which records its reads again from scratch.

Registering is idempotent: computed() on a task that is already registered
just forces it to run again. A disposed task is ignored.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from cellflow._tracking import current_task, notify
from cellflow.errors import InvalidArgument, describe, message

logger = logging.getLogger("cellflow.computed")

F = TypeVar("F", bound=Callable[[], object])


def computed(task: F) -> F:
    """Run task now, then re-run it whenever a reactive attribute it read changes.

    Returns task unchanged, so it also works as a decorator.

    Usage:
        cell = observe(Cell())
        log = []

        @computed
        def track():
            log.append(cell.value)
        # log == [cell.value]: ran immediately

        cell.value = 2
        # log == [..., 2]: re-ran because cell.value changed

        dispose(track)
    """
    if not callable(task):
        raise InvalidArgument(message(
            "Attempted to register a value that is not callable as a computed task",
            f"computed(task) expects a zero-argument callable, got {task!r}",
        ))

    running = current_task.get()
    if running is not None:
        # The outer task may register a fresh inner task on every run.
        logger.warning(
            "Computed task registered from within another computed task "
            "(running: %s, registered: %s)",
            describe(running), describe(task),
        )

    notify(task)
    return task
