"""Task registry: identity and disposal bookkeeping for task callables.

A task is any zero-argument callable, identified by object identity. Its
state is kept in a TaskRecord stored in _anchor.tasks under id(task):

    disposed  terminal flag; a disposed task never runs again
    removers  one callback per DependencyStore the task is registered in

The record holds its task through a weak reference when the callable allows
it, so registering a task does not keep it alive on its own. Callables that
cannot be weakly referenced (builtins, some C types) are held strongly.
"""

from __future__ import annotations

import weakref
from typing import Callable

from cellflow import _anchor

Task = Callable[[], object]
Remover = Callable[[Task], None]


class TaskRecord:
    __slots__ = ("_ref", "disposed", "removers")

    def __init__(self, task: Task) -> None:
        key = id(task)

        def _forget(_ref, key=key, record=self) -> None:
            if _anchor.tasks.get(key) is record:
                del _anchor.tasks[key]

        try:
            self._ref = weakref.ref(task, _forget)
        except TypeError:
            self._ref = lambda task=task: task
        self.disposed = False
        self.removers: list[Remover] = []

    @property
    def task(self) -> Task | None:
        return self._ref()

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else f"{len(self.removers)} deps"
        return f"TaskRecord({self.task!r}, {state})"


def lookup(task: Task) -> TaskRecord | None:
    """The record for task, or None if it was never registered (or was cleaned)."""
    record = _anchor.tasks.get(id(task))
    if record is not None and record.task is task:
        return record
    return None


def ensure(task: Task) -> TaskRecord:
    """The record for task, creating a fresh one if needed."""
    record = lookup(task)
    if record is None:
        record = TaskRecord(task)
        _anchor.tasks[id(task)] = record
    return record


def forget(task: Task) -> None:
    """Drop task's record; the task becomes unregistered but reusable."""
    if lookup(task) is not None:
        del _anchor.tasks[id(task)]


def is_disposed(task: Task) -> bool:
    record = lookup(task)
    return record is not None and record.disposed


def detach(record: TaskRecord, task: Task) -> None:
    """Remove task from every DependencyStore it is registered in."""
    removers, record.removers = record.removers, []
    for remove in removers:
        remove(task)
