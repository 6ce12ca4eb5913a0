# tests/test_waits.py
"""
Tests for wait utilities.
"""

import pytest

from gridauto.exceptions import TimeoutError
from gridauto.scheduler import ManualClock
from gridauto.waits import wait_until


@pytest.fixture
def virtual_time(monkeypatch):
    """Drive wait_until with a virtual clock."""
    clock = ManualClock()
    monkeypatch.setattr("gridauto.waits._now", clock.time)
    return clock


class TestWaitUntil:
    """Tests for wait_until function."""

    def test_returns_immediately_when_true(self):
        """Should return immediately when predicate is true."""
        result = wait_until(lambda: True, timeout=5)
        assert result is True

    def test_returns_truthy_value(self):
        """Should return the truthy value from predicate."""
        result = wait_until(lambda: [3, 4], timeout=5)
        assert result == [3, 4]

    def test_waits_for_condition(self, virtual_time):
        """Should poll at the interval until the condition holds."""
        counter = {"value": 0}

        def predicate():
            counter["value"] += 1
            return counter["value"] >= 3

        result = wait_until(predicate, timeout=5, interval=0.25, sleep=virtual_time.sleep)

        assert result is True
        assert virtual_time.time() == pytest.approx(0.5)

    def test_timeout_raises_error(self, virtual_time):
        """Should raise TimeoutError when timeout expires."""
        with pytest.raises(TimeoutError) as exc_info:
            wait_until(lambda: False, timeout=1.0, interval=0.25,
                       description="grid rows", sleep=virtual_time.sleep)

        error = exc_info.value
        assert "Timed out waiting for grid rows" in str(error)
        assert error.timeout == 1.0
        assert error.description == "grid rows"
        assert error.attempt_count == 5
        assert error.elapsed_time == pytest.approx(1.0)

    def test_preserves_exception(self, virtual_time):
        """Should preserve the last exception in TimeoutError."""
        def failing_predicate():
            raise ValueError("test error")

        with pytest.raises(TimeoutError) as exc_info:
            wait_until(failing_predicate, timeout=0.5, interval=0.25, sleep=virtual_time.sleep)

        assert isinstance(exc_info.value.original_exception, ValueError)
        assert exc_info.value.get_root_cause() is exc_info.value.original_exception

    def test_real_sleep(self):
        """Should fall back to time.sleep without a sleep function."""
        with pytest.raises(TimeoutError):
            wait_until(lambda: False, timeout=0.05, interval=0.01)


class TestTimeoutErrorAttributes:
    """Tests for TimeoutError attributes."""

    def test_get_root_cause(self):
        """Should get root cause from nested exceptions."""
        inner = ValueError("root cause")

        middle = TimeoutError("inner wait")
        middle.original_exception = inner
        error = TimeoutError("outer error")
        error.original_exception = middle

        assert error.get_root_cause() is inner

    def test_str_includes_details(self):
        """Should append attempts and elapsed time."""
        error = TimeoutError("timeout")
        error.attempt_count = 4
        error.elapsed_time = 1.5
        assert "Attempts: 4" in str(error)
        assert "Elapsed: 1.50s" in str(error)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
