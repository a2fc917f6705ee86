"""cellflow: fine-grained reactive dependency tracking for Python objects."""

from importlib.metadata import version as _version

__version__ = _version("cellflow")

from cellflow._tracking import get_current_task, get_pending_count
from cellflow.errors import (
    ReactivityError,
    InvalidArgument,
    NoActiveTask,
    ComputedOverflowError,
)
from cellflow.settings import configure
from cellflow.observable import observe, ignore, is_reactive, dependants
from cellflow.computed import computed
from cellflow.dispose import dispose
from cellflow.action import action, transaction
# textual NOT auto-imported: opt-in only

__all__ = [
    "observe",
    "ignore",
    "is_reactive",
    "dependants",
    "computed",
    "dispose",
    "action",
    "transaction",
    "configure",
    "get_current_task",
    "get_pending_count",
    "ReactivityError",
    "InvalidArgument",
    "NoActiveTask",
    "ComputedOverflowError",
]
