# gridauto/scheduler.py
"""
@file scheduler.py
@brief Single-threaded cooperative timer scheduling with cancellation.

Every continuation runs on the thread that calls SerialScheduler.run(),
one at a time, in due-time order. Browser drivers such as Playwright's
sync API are not thread-safe, so no worker threads are involved.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

log = logging.getLogger("gridauto.scheduler")


class TimerHandle:
    """Cancellable reference to a scheduled continuation."""

    def __init__(self, due: float, callback: Callable[..., Any], args: Tuple[Any, ...]):
        self.due = due
        self._callback = callback
        self._args = args
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _run(self) -> None:
        self._callback(*self._args)


class CancellationToken:
    """
    Cooperative cancellation flag shared by one session's continuations.

    Handles bound to the token are cancelled with it, so a pending
    continuation never runs after cancel().
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._handles: List[TimerHandle] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, handle: TimerHandle) -> TimerHandle:
        self._handles = [h for h in self._handles if not h.cancelled]
        self._handles.append(handle)
        if self._cancelled:
            handle.cancel()
        return handle

    def cancel(self) -> None:
        self._cancelled = True
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()


class ManualClock:
    """Virtual clock for deterministic runs; sleeping advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.now += seconds


class SerialScheduler:
    """
    Timer queue executed on the calling thread.

    @param clock Time source (monotonic seconds)
    @param sleep Blocking sleep used while waiting for the next due callback
                 and for in-flight pauses
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """
        Schedule callback(*args) after delay seconds.

        @return TimerHandle that can cancel the continuation
        """
        handle = TimerHandle(self._clock() + max(0.0, float(delay)), callback, args)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def pause(self, seconds: float) -> None:
        """Blocking in-flight pause; scheduled continuations do not run during it."""
        if seconds > 0:
            self._sleep(seconds)

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def run(self, until: Optional[Callable[[], bool]] = None, timeout: Optional[float] = None) -> None:
        """
        Run scheduled continuations until the queue is empty.

        @param until Optional predicate checked between continuations; True stops the loop
        @param timeout Optional wall-clock limit in seconds
        """
        deadline = None if timeout is None else self._clock() + timeout
        while self._queue:
            if until is not None and until():
                return
            due, _, handle = self._queue[0]
            if handle.cancelled:
                heapq.heappop(self._queue)
                continue
            wait = due - self._clock()
            if deadline is not None and due > deadline:
                return
            if wait > 0:
                self._sleep(wait)
                continue
            heapq.heappop(self._queue)
            handle._run()

    def advance(self, seconds: float) -> None:
        """Let seconds of time pass, running every continuation that falls due."""
        target = self._clock() + seconds
        self.run(timeout=seconds)
        remaining = target - self._clock()
        if remaining > 0:
            self._sleep(remaining)

    def clear(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
