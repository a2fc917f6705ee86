"""Tests for configure()."""

import pytest

from cellflow import InvalidArgument, configure, settings


class TestConfigure:
    def test_defaults(self):
        assert settings.current.max_runs == settings.DEFAULT_MAX_RUNS == 2000
        assert settings.current.overflow_trace == settings.DEFAULT_OVERFLOW_TRACE == 10
        assert settings.current.observe_callables is True

    def test_updates_only_given_values(self):
        configure(max_runs=10)
        assert settings.current.max_runs == 10
        assert settings.current.overflow_trace == 10
        configure(overflow_trace=0, observe_callables=False)
        assert settings.current.max_runs == 10
        assert settings.current.overflow_trace == 0
        assert settings.current.observe_callables is False

    @pytest.mark.parametrize("value", [0, -1, 1.5, "10", True])
    def test_rejects_bad_ceiling(self, value):
        with pytest.raises(InvalidArgument):
            configure(max_runs=value)

    def test_bad_call_changes_nothing(self):
        with pytest.raises(InvalidArgument):
            configure(max_runs=5, overflow_trace=-1)
        assert settings.current.max_runs == 2000

    def test_reset(self):
        configure(max_runs=3, observe_callables=False)
        settings.reset()
        assert settings.current == settings.Settings()
