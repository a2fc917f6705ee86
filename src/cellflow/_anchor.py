"""Data anchor: plain Python structures that hold all scheduler state.

The scheduler (_tracking), the task registry and the disposal manager all
read and write these globals; no other module touches them. Separating data
from behavior keeps the state inspectable from tests.
"""

from __future__ import annotations

from typing import Callable

# Tasks pending execution. Entries before `cursor` have already run in the
# current drain; the list only grows while a drain is active.
queue: list[Callable[[], object]] = []
cursor: int = 0

# True while a drain (or an outermost batch) owns the queue.
locked: bool = False

# Batch nesting depth, and whether the outermost batch took the lock.
batch_depth: int = 0
batch_held: bool = False

# Task registry: id(task) -> TaskRecord.
tasks: dict[int, object] = {}
