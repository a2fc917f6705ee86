"""Textual integration for cellflow. Opt-in: requires textual.

Guarded tasks run only while their app's widget tree is queryable, swallow
NoMatches from widget queries, and marshal runs triggered from a background
thread onto the app thread. All Textual coupling lives here; the core engine
stays agnostic.

Pause state is owned by this module and keyed by id(app); nothing is stored
on the app object.
"""

import contextvars
import functools
import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches
from cellflow import computed as _computed, registry
from cellflow._tracking import notify

logger = logging.getLogger("cellflow.textual")

# id(app) present <-> inside a pause() context for that app.
_paused_apps: set[int] = set()

# id(app) -> guarded tasks skipped while the app was not safe.
_deferred: dict[int, list] = {}


@contextmanager
def pause(app):
    """Suspend guarded tasks during widget replacement.

    Tasks triggered while paused are re-run when the pause ends.
    """
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)
        refresh(app)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _live(task) -> bool:
    record = registry.lookup(task)
    return record is not None and not record.disposed


def _prune(key: int) -> list:
    """Drop disposed (or cleaned) tasks from the deferred list of app id key."""
    pending = [t for t in _deferred.get(key, ()) if _live(t)]
    if pending:
        _deferred[key] = pending
    else:
        _deferred.pop(key, None)
    return pending


def refresh(app) -> None:
    """Re-run guarded tasks that were skipped while app was not safe.

    Disposed tasks are dropped even while the app is still unsafe.
    """
    _prune(id(app))
    if not is_safe(app):
        return
    for task in _deferred.pop(id(app), []):
        notify(task)


def computed(app, fn):
    """computed() that safely bridges to Textual widgets.

    Returns the registered task; pass it to cellflow.dispose() to stop it.
    """
    _main = threading.get_ident()

    @functools.wraps(fn)
    def _guarded():
        if not is_safe(app):
            # Skipped runs read nothing, so remember the task to run it later.
            pending = _deferred.setdefault(id(app), _prune(id(app)))
            if not any(t is _guarded for t in pending):
                pending.append(_guarded)
            logger.debug("Deferred %s: app not safe", _guarded.__qualname__)
            return
        if threading.get_ident() != _main:
            # Carry the context over so reads still attribute to this task.
            app.call_from_thread(contextvars.copy_context().run, _safe)
        else:
            _safe()

    def _safe():
        try:
            fn()
        except NoMatches:
            pass

    return _computed(_guarded)
