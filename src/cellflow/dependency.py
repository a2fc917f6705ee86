"""Dependency store: the tasks that read one reactive key.

Each reactive slot owns one DependencyStore. Reading the slot while a task
is running adds that task (once); writing the slot notifies every task in the
store, in the order they first read it.

The store never knows about a task's other memberships. Instead it hands the
task's record a removal callback, so disposal can detach the task from every
store it is in without scanning.
"""

from __future__ import annotations

from typing import Iterator

from cellflow import registry
from cellflow._tracking import current_task, notify
from cellflow.registry import Task


class DependencyStore:
    """Insertion-ordered set of dependant tasks, keyed by identity."""

    __slots__ = ("_tasks",)

    def __init__(self) -> None:
        # id(task) -> task; dicts keep first-read order and delete in O(1).
        self._tasks: dict[int, Task] = {}

    def track(self) -> None:
        """Register the currently running task, if any, as a dependant."""
        task = current_task.get()
        if task is None or id(task) in self._tasks:
            return
        record = registry.lookup(task)
        if record is None or record.disposed:
            return
        self._tasks[id(task)] = task
        record.removers.append(self._remove)

    def notify(self) -> None:
        """Schedule every dependant for re-execution."""
        for key, task in list(self._tasks.items()):
            # Earlier dependants may have disposed this one while running.
            if self._tasks.get(key) is task:
                notify(task)

    def _remove(self, task: Task) -> None:
        if self._tasks.get(id(task)) is task:
            del self._tasks[id(task)]

    def __contains__(self, task: object) -> bool:
        return self._tasks.get(id(task)) is task

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return f"DependencyStore({len(self._tasks)} dependants)"
