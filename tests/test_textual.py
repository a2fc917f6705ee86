"""Tests for cellflow.textual: Textual integration layer."""

import logging
import threading

import pytest
from textual.css.query import NoMatches

from cellflow import dispose, observe
from cellflow import textual as ctx
from conftest import Box


@pytest.fixture(autouse=True)
def _clear_app_state():
    yield
    ctx._deferred.clear()
    ctx._paused_apps.clear()


class _MockApp:
    """Minimal mock matching the Textual App interface ctx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestComputed:
    def test_fires_when_safe(self):
        app = _MockApp()
        box = observe(Box(v=1))
        log = []
        ctx.computed(app, lambda: log.append(box.v))
        assert log == [1]
        box.v = 2
        assert log == [1, 2]

    def test_deferred_until_running(self, caplog):
        app = _MockApp(is_running=False)
        box = observe(Box(v=1))
        log = []
        with caplog.at_level(logging.DEBUG, logger="cellflow.textual"):
            ctx.computed(app, lambda: log.append(box.v))
        assert log == []
        assert "Deferred" in caplog.text

        box.v = 2
        assert log == []

        app.is_running = True
        ctx.refresh(app)
        assert log == [2]
        box.v = 3
        assert log == [2, 3]

    def test_reruns_after_pause(self):
        app = _MockApp()
        box = observe(Box(v=1))
        log = []
        ctx.computed(app, lambda: log.append(box.v))
        with ctx.pause(app):
            box.v = 2
            box.v = 3
            assert log == [1]
        assert log == [1, 3]
        box.v = 4
        assert log == [1, 3, 4]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        box = observe(Box(v=1))
        calls = [0]

        def _fn():
            calls[0] += 1
            box.v  # track dependency
            if calls[0] > 1:
                raise NoMatches("Widget")

        task = ctx.computed(app, _fn)
        assert calls[0] == 1

        # Second run raises NoMatches: silently caught
        box.v = 2
        assert calls[0] == 2
        dispose(task)

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        box = observe(Box(v=1))

        def _fn():
            if box.v > 1:
                raise ValueError("boom")

        task = ctx.computed(app, _fn)
        with pytest.raises(ValueError, match="boom"):
            box.v = 2
        dispose(task)

    def test_dispose_stops(self):
        app = _MockApp()
        box = observe(Box(v=1))
        log = []
        task = ctx.computed(app, lambda: log.append(box.v))
        box.v = 2
        dispose(task)
        box.v = 3
        assert log == [1, 2]

    def test_disposed_task_not_rerun_after_pause(self):
        app = _MockApp()
        box = observe(Box(v=1))
        log = []
        task = ctx.computed(app, lambda: log.append(box.v))
        with ctx.pause(app):
            box.v = 2
            dispose(task)
        assert log == [1]

    def test_disposed_deferred_tasks_are_dropped(self):
        app = _MockApp(is_running=False)
        box = observe(Box(v=1))
        task = ctx.computed(app, lambda: box.v)
        assert id(app) in ctx._deferred

        dispose(task)
        ctx.refresh(app)
        assert id(app) not in ctx._deferred

    def test_clean_disposed_deferred_tasks_are_dropped(self):
        app = _MockApp(is_running=False)
        log = []
        task = ctx.computed(app, lambda: log.append("ran"))
        dispose(task, clean=True)

        app.is_running = True
        ctx.refresh(app)
        assert log == []
        assert id(app) not in ctx._deferred

    def test_deferring_prunes_disposed_tasks(self):
        app = _MockApp(is_running=False)
        first = ctx.computed(app, lambda: None)
        dispose(first)
        second = ctx.computed(app, lambda: None)
        pending = ctx._deferred[id(app)]
        assert len(pending) == 1
        assert pending[0] is second
        dispose(second)
        ctx.refresh(app)

    def test_thread_marshal(self):
        """Triggers from a background thread use call_from_thread."""
        app = _MockApp()
        box = observe(Box(v=1))
        log = []
        ctx.computed(app, lambda: log.append(box.v))

        def _bg():
            box.v = 2

        t = threading.Thread(target=_bg)
        t.start()
        t.join()

        assert log == [1, 2]
        assert len(app._call_from_thread_log) >= 1

        # Reads made through call_from_thread still count as dependencies.
        box.v = 3
        assert log == [1, 2, 3]

    def test_keeps_function_name(self):
        app = _MockApp()

        def refresh_footer():
            pass

        task = ctx.computed(app, refresh_footer)
        assert task.__name__ == "refresh_footer"
        dispose(task)


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert ctx.is_safe(app)

        with pytest.raises(RuntimeError):
            with ctx.pause(app):
                assert not ctx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert ctx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with ctx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with ctx.pause(app_a):
            assert not ctx.is_safe(app_a)
            assert ctx.is_safe(app_b)
