"""Virtual-clock timers standing in for setTimeout / setInterval / requestAnimationFrame.

Nothing runs on its own: the host (or a test) moves time forward with
``advance`` and every callback that fell due runs in deadline order.
"""

import heapq
import itertools
from typing import Callable, Optional

FRAME_MS = 16


class Timer:
    """Handle returned by the scheduler; ``cancel`` drops any pending run."""

    def __init__(self, callback: Callable[[], None], interval: Optional[float] = None):
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._sequence = itertools.count()

    def _push(self, deadline: float, timer: Timer) -> None:
        heapq.heappush(self._queue, (deadline, next(self._sequence), timer))

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(callback)
        self._push(self.now + max(0.0, delay_ms), timer)
        return timer

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Timer:
        if interval_ms <= 0:
            raise ValueError("interval must be positive")
        timer = Timer(callback, interval=interval_ms)
        self._push(self.now + interval_ms, timer)
        return timer

    def request_frame(self, callback: Callable[[], None]) -> Timer:
        return self.call_later(FRAME_MS, callback)

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, ms: float) -> None:
        """Move the clock forward by ``ms``, running everything that falls due."""
        target = self.now + ms
        while self._queue and self._queue[0][0] <= target:
            deadline, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now = deadline
            if timer.interval is not None:
                self._push(deadline + timer.interval, timer)
            timer.callback()
        self.now = target
