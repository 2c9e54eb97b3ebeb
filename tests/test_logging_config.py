"""
Tests for the logging helpers.
"""

import time

import pytest

from evidence_retrieval.logging_config import (
    Timer,
    debug_log,
    debug_timing,
    format_duration,
    warning,
)


class TestTimer:
    """Test the Timer context manager."""

    def test_measures_duration(self):
        """Duration is available after the block exits."""
        with Timer("sleep", log=False) as timer:
            time.sleep(0.01)
        assert timer.elapsed_ms >= 10

    def test_duration_before_exit_raises(self):
        """Asking for the duration too early is an error."""
        with pytest.raises(ValueError, match="has not finished"):
            Timer("never run").elapsed_ms

    def test_does_not_swallow_exceptions(self):
        """Exceptions inside the block propagate."""
        with pytest.raises(RuntimeError):
            with Timer("failing block"):
                raise RuntimeError("boom")


class TestLogFunctions:
    """Test the module-level helpers."""

    @pytest.mark.parametrize("seconds, expected", [
        (0.25, "250 ms"),
        (2.5, "2.50s"),
        (150, "2.5m"),
    ])
    def test_format_duration(self, seconds, expected):
        """Durations use the unit that reads best."""
        assert format_duration(seconds) == expected

    def test_log_calls(self):
        """Helpers accept plain messages without raising."""
        debug_log("[Test] debug message")
        debug_timing("[Test] operation", 0.5)
        warning("[Test] warning message")
