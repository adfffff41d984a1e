"""
Game clock for Number Nosher.

A logical millisecond clock with a task queue. Everything time-driven in
the game (the periodic coordinator tick, the spawn warning delay, the
autopilot step delay) is a task on this clock instead of an ad hoc timer.
Time only moves when `advance()` is called, so tests drive it directly and
a paused game simply stops advancing it.

Tasks due at the same instant run in scheduling order.
"""

from __future__ import annotations

import heapq
from itertools import count
from typing import Callable, Optional


class ScheduledTask:
    """
    Handle for a scheduled callback.

    Attributes:
        due_ms: Clock time at which the callback runs next.
        interval_ms: Repeat interval, or None for a one-shot task.
        cancelled: Set by `cancel()`; cancelled tasks never run.
    """

    __slots__ = ("due_ms", "interval_ms", "callback", "cancelled", "seq")

    def __init__(
        self,
        due_ms: int,
        callback: Callable[[], None],
        interval_ms: Optional[int] = None,
        seq: int = 0,
    ):
        self.due_ms = due_ms
        self.callback = callback
        self.interval_ms = interval_ms
        self.cancelled = False
        self.seq = seq

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def repeating(self) -> bool:
        return self.interval_ms is not None

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"ScheduledTask(due={self.due_ms}, interval={self.interval_ms}, {state})"


class GameClock:
    """
    Discrete logical clock with a heap of scheduled tasks.

    Attributes:
        now_ms: Current clock time in milliseconds.
    """

    def __init__(self) -> None:
        self.now_ms: int = 0
        self._queue: list[tuple[int, int, ScheduledTask]] = []
        self._seq = count()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _push(self, task: ScheduledTask) -> None:
        task.seq = next(self._seq)
        heapq.heappush(self._queue, (task.due_ms, task.seq, task))

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        """Run `callback` once, `delay_ms` from now."""
        task = ScheduledTask(self.now_ms + max(0, int(delay_ms)), callback)
        self._push(task)
        return task

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        """Run `callback` every `interval_ms`, first run one interval from now."""
        if interval_ms < 1:
            raise ValueError(f"interval_ms must be >= 1, got {interval_ms}")
        task = ScheduledTask(self.now_ms + int(interval_ms), callback, interval_ms=int(interval_ms))
        self._push(task)
        return task

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def advance(self, ms: int) -> int:
        """
        Move time forward by `ms`, running every task that falls due.

        Callbacks may schedule or cancel other tasks; anything newly due
        within the window also runs.

        Returns:
            Number of callbacks executed.
        """
        target = self.now_ms + max(0, int(ms))
        executed = 0

        while self._queue and self._queue[0][0] <= target:
            _, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now_ms = task.due_ms
            if task.repeating:
                task.due_ms += task.interval_ms
                self._push(task)
            task.callback()
            executed += 1

        self.now_ms = target
        return executed

    @property
    def pending(self) -> int:
        """Number of live (non-cancelled) tasks."""
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def clear(self) -> None:
        """Cancel and drop every task."""
        for _, _, task in self._queue:
            task.cancel()
        self._queue.clear()

    def __repr__(self) -> str:
        return f"GameClock(now={self.now_ms}ms, pending={self.pending})"
