"""Scheduler: the heart of cellflow.

Uses a contextvar to track which task is running, so reactive slot reads can
register themselves with it. Pending tasks live in a single queue (see
_anchor) that is drained by whichever notify() call found it unlocked:

- notify() appends a task unless it is disposed or already pending.
- The outermost notify() takes the lock and runs queued tasks in order,
  including tasks appended while it runs. Nested notify() calls just enqueue.
- The queue, cursor and lock are reset in a finally block, whatever happens.

Batching: mutations inside an @action or `with transaction()` hold the lock so
notifications accumulate and are drained once when the outermost scope exits.
"""

from __future__ import annotations

import contextvars
from itertools import islice

from cellflow import _anchor, registry, settings
from cellflow.errors import ComputedOverflowError, describe, message
from cellflow.registry import Task

# The task whose body is executing right now, or None outside of any task.
# When set, any reactive slot read registers the task as a dependant.
current_task: contextvars.ContextVar[Task | None] = contextvars.ContextVar(
    "current_task", default=None
)


def get_current_task() -> Task | None:
    """The task currently executing, or None."""
    return current_task.get()


def get_pending_count() -> int:
    """Number of queued tasks that have not started yet. Useful for testing."""
    count = len(_anchor.queue) - _anchor.cursor
    if count and current_task.get() is _anchor.queue[_anchor.cursor]:
        count -= 1
    return count


def is_pending(task: Task) -> bool:
    """Is task queued at or after the cursor (identity comparison)?"""
    return any(t is task for t in islice(_anchor.queue, _anchor.cursor, None))


def notify(task: Task) -> None:
    """Queue task for execution and drain the queue if nobody else is."""
    record = registry.ensure(task)
    if record.disposed or is_pending(task):
        return
    _anchor.queue.append(task)

    if not _anchor.locked:
        _anchor.locked = True
        _drain()


def withdraw(task: Task) -> None:
    """Remove task from the queue if it is waiting to run in this drain.

    The running task itself (at the cursor) is left alone; the order of the
    remaining entries is preserved.
    """
    if not _anchor.locked:
        return
    queue = _anchor.queue
    running = current_task.get()
    for i in range(len(queue) - 1, _anchor.cursor - 1, -1):
        if queue[i] is task:
            if i == _anchor.cursor and running is task:
                return
            del queue[i]
            return


def _drain() -> None:
    """Run queued tasks until the queue is exhausted. Caller holds the lock."""
    try:
        while _anchor.cursor < len(_anchor.queue):
            if _anchor.cursor >= settings.current.max_runs:
                _overflow()
            _execute(_anchor.queue[_anchor.cursor])
            _anchor.cursor += 1
    finally:
        _anchor.queue = []
        _anchor.cursor = 0
        _anchor.locked = False


def _execute(task: Task) -> None:
    """Run one task, re-deriving its dependencies from scratch."""
    record = registry.lookup(task)
    if record is None or record.disposed:
        return
    registry.detach(record, task)

    token = current_task.set(task)
    try:
        task()
    finally:
        current_task.reset(token)


def _overflow() -> None:
    queue = _anchor.queue
    start = max(len(queue) - settings.current.overflow_trace, 0)
    lines = [f"{i + 1}: {describe(queue[i])}" for i in range(start, len(queue))]
    raise ComputedOverflowError(message(
        f"Computed queue overflow after {_anchor.cursor} runs in one drain",
        f"Last {len(lines)} tasks in the queue:\n" + "\n".join(lines),
    ))


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    _anchor.batch_depth += 1
    if _anchor.batch_depth == 1 and not _anchor.locked:
        _anchor.locked = True
        _anchor.batch_held = True


def end_batch() -> None:
    """Exit a batching scope. The outermost scope drains what accumulated."""
    _anchor.batch_depth -= 1
    if _anchor.batch_depth == 0 and _anchor.batch_held:
        _anchor.batch_held = False
        _drain()
