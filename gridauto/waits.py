# gridauto/waits.py
"""
@file waits.py
@brief Polling wait utility used by browser-backed accessors.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from .exceptions import TimeoutError

log = logging.getLogger("gridauto.waits")

T = TypeVar("T")


def _now() -> float:
    """Monotonic time source for deterministic timeout calculations."""
    return time.monotonic()


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition",
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """
    Repeatedly runs predicate until it returns a truthy value,
    or until timeout.

    @param sleep Optional sleep function; browser backends pass one that
                 keeps servicing page events while waiting.
    """
    do_sleep = sleep or time.sleep
    start_time = _now()
    last_exception: Optional[BaseException] = None
    attempt_count = 0

    log.debug("wait_start description=%s timeout_s=%s interval_s=%s", description, timeout, interval)

    while True:
        attempt_count += 1
        elapsed = _now() - start_time

        if elapsed >= timeout:
            break

        try:
            result = predicate()
            if result:
                log.debug(
                    "wait_success description=%s attempts=%d elapsed_s=%.3f",
                    description, attempt_count, _now() - start_time,
                )
                return result
        except Exception as e:
            last_exception = e

        time_left = timeout - elapsed
        sleep_time = min(interval, time_left) if time_left > 0 else 0
        if sleep_time > 0:
            do_sleep(sleep_time)

    elapsed = _now() - start_time
    log.debug("wait_timeout description=%s attempts=%d elapsed_s=%.3f", description, attempt_count, elapsed)

    if last_exception:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s: "
            f"{type(last_exception).__name__}: {last_exception}"
        )
        error.original_exception = last_exception
    else:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s "
            f"(condition kept returning falsy)"
        )
    error.description = description
    error.timeout = timeout
    error.attempt_count = attempt_count
    error.elapsed_time = elapsed
    raise error
