"""Actions and transactions: batched state mutations.

Wrapping mutations in an @action or `with transaction()` defers every task
they trigger until the outermost scope exits. Each dependant then runs once,
seeing all the changes, instead of once per assignment.

A batch works by holding the scheduler lock: notifications only enqueue while
it is held, and the outermost scope drains the queue on exit, also when the
body raised. Inside a running task the lock is already held by the drain, so
a batch there adds nothing and the queued tasks run when the drain reaches
them.

Execution stays synchronous: the queued tasks run before the scope returns.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from cellflow._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction() -> Iterator[None]:
    """Batch every reactive assignment made inside the block.

    Usage:
        with transaction():
            point.x = 1
            point.y = 2
        # tasks reading point ran once, here
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: run each call of fn inside a transaction().

    Usage:
        point = observe(Point(x=0, y=0))

        @action
        def move(x, y):
            point.x = x
            point.y = y
            # tasks reading both see the new position once
    """

    @functools.wraps(fn)
    def batched(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return batched
