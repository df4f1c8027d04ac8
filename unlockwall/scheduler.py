# unlockwall/scheduler.py
from __future__ import annotations
import heapq
import itertools
import time
from typing import Callable, List, Optional, Tuple

Callback = Callable[[], None]


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("time does not run backwards")
        self._now += seconds


class TimerHandle:
    def __init__(self, callback: Callback, due: float, interval: Optional[float], priority: int):
        self.callback = callback
        self.due = due
        self.interval = interval
        self.priority = priority
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        # cancelling twice, or after the last run, is a no-op
        self._cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<TimerHandle due={self.due:.3f} interval={self.interval} {state}>"


class Scheduler:
    """
    Explicit event queue driven by a clock.

    Nothing runs on its own: due events fire only inside run_pending(), in
    (due time, priority, insertion order) order. Servers pump it at the start
    of every request; tests pump it after advancing a ManualClock.

    Safety:
      - not thread-safe; the owner serializes access
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._queue: List[Tuple[float, int, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock()

    def _push(self, handle: TimerHandle) -> TimerHandle:
        heapq.heappush(self._queue, (handle.due, handle.priority, next(self._seq), handle))
        return handle

    def call_later(self, delay: float, callback: Callback, priority: int = 0) -> TimerHandle:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        return self._push(TimerHandle(callback, self.now() + delay, None, priority))

    def call_every(self, interval: float, callback: Callback, priority: int = 0) -> TimerHandle:
        """Run callback every `interval` seconds, first run one interval from now."""
        if interval <= 0:
            raise ValueError("interval must be > 0")
        return self._push(TimerHandle(callback, self.now() + interval, interval, priority))

    def pending(self) -> int:
        return sum(1 for *_, h in self._queue if not h.cancelled)

    def run_pending(self) -> int:
        """Fire every event that is due; returns how many callbacks ran."""
        ran = 0
        now = self.now()
        while self._queue and self._queue[0][0] <= now:
            _, _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
            if handle.interval is not None and not handle.cancelled:
                handle.due += handle.interval
                self._push(handle)
        return ran
