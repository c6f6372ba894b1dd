"""Rolling-window limiter on task starts, independent of pool size."""

from __future__ import annotations

import time
from collections import deque
from threading import Condition, Event
from typing import Callable


class RateLimiter:
    """Allow at most ``max_operations`` starts per rolling ``window_seconds``.

    Safe to share between worker threads. A task can be pool-ready but still
    wait here until an older start falls out of the window.
    """

    def __init__(
        self,
        max_operations: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_operations <= 0:
            raise ValueError("max_operations must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_operations = max_operations
        self.window_seconds = window_seconds
        self._clock = clock
        self._starts: deque[float] = deque()
        self._condition = Condition()
        self.total_acquired = 0
        self.total_throttled = 0

    def _evict(self, now: float) -> None:
        horizon = now - self.window_seconds
        while self._starts and self._starts[0] <= horizon:
            self._starts.popleft()

    def try_acquire(self) -> bool:
        with self._condition:
            now = self._clock()
            self._evict(now)
            if len(self._starts) < self.max_operations:
                self._starts.append(now)
                self.total_acquired += 1
                return True
            return False

    def acquire(self, cancel_event: Event | None = None, poll_interval: float = 0.5) -> bool:
        """Block until a start slot is free. Returns False if cancelled first."""

        throttled = False
        with self._condition:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    return False
                now = self._clock()
                self._evict(now)
                if len(self._starts) < self.max_operations:
                    self._starts.append(now)
                    self.total_acquired += 1
                    return True
                if not throttled:
                    throttled = True
                    self.total_throttled += 1
                wait_for = self._starts[0] + self.window_seconds - now
                self._condition.wait(timeout=max(0.0, min(wait_for, poll_interval)))

    def in_window(self) -> int:
        with self._condition:
            self._evict(self._clock())
            return len(self._starts)


__all__ = ["RateLimiter"]
