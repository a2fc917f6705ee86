"""dispose(): detach a task from everything it depends on."""

from __future__ import annotations

from cellflow import registry
from cellflow._tracking import current_task, withdraw
from cellflow.errors import InvalidArgument, NoActiveTask, message
from cellflow.registry import Task


def dispose(task: Task | None = None, clean: bool = False) -> Task | None:
    """Stop a task from ever running again.

    The task is removed from every reactive attribute it depends on and, if it
    is waiting in the current drain, from the queue. Disposing twice is a
    no-op.

    With clean=True the task is only detached: it is not marked disposed and
    computed(task) registers it again from scratch.

    Called without a task, disposes the task that is currently running and
    returns None. Otherwise returns task.
    """
    supplied = task is not None
    if task is None:
        task = current_task.get()
        if task is None:
            raise NoActiveTask(message(
                "Attempted to dispose of the current computed task while no task is running",
                "dispose() was called without a task outside of any computed task",
            ))
    elif not callable(task):
        raise InvalidArgument(message(
            "Attempted to dispose of a value that is not callable",
            f"dispose(task) expects a callable, got {task!r}",
        ))

    record = registry.lookup(task) if clean else registry.ensure(task)
    if record is not None and not record.disposed:
        if clean:
            registry.forget(task)
        else:
            record.disposed = True
        registry.detach(record, task)
        withdraw(task)

    return task if supplied else None
