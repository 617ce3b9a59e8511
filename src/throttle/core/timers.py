"""Expiry timer scheduling.

All expiries share one scheduler thread, started lazily on the first
schedule() call. Pending timers live in a heap ordered by deadline; a
cancelled timer drops its callback at once and is discarded when it
reaches the top of the heap. The thread is daemonic by default so pending
expiries never block interpreter exit, and it does not depend on any
event loop staying open.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from time import monotonic as _monotonic
from typing import Callable, List, Optional, Protocol, Tuple

from throttle import config

logger = logging.getLogger(__name__)

# Rebuild the heap once this many cancelled timers are waiting in it
_COMPACT_THRESHOLD = 256


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timer:
    __slots__ = ("deadline", "_callback", "_scheduler")

    def __init__(self, deadline: float, callback: Callable[[], None], scheduler: "Scheduler") -> None:
        self.deadline = deadline
        self._callback: Optional[Callable[[], None]] = callback
        self._scheduler = scheduler

    @property
    def cancelled(self) -> bool:
        return self._callback is None

    def cancel(self) -> None:
        if self._callback is None:
            return
        # Release the callback so a cancelled timer keeps nothing alive
        self._callback = None
        self._scheduler._cancelled()

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is None:
            return
        try:
            callback()
        except Exception:
            logger.exception("Expiry callback failed")


class Scheduler:
    """One daemon thread running every scheduled expiry in deadline order."""

    def __init__(self, *, daemon: Optional[bool] = None, name: str = "throttle-expiry") -> None:
        self._daemon = daemon
        self._name = name
        self._heap: List[Tuple[float, int, Timer]] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._cancelled_count = 0

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    def schedule(self, seconds: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(_monotonic() + max(0.0, seconds), callback, self)

        with self._cond:
            heapq.heappush(self._heap, (timer.deadline, next(self._seq), timer))
            self._ensure_thread()

            # Only an earlier head changes how long the thread should sleep
            if self._heap[0][2] is timer:
                self._cond.notify()

        return timer

    def _cancelled(self) -> None:
        with self._cond:
            self._cancelled_count += 1
            if self._cancelled_count >= _COMPACT_THRESHOLD and self._cancelled_count * 2 > len(self._heap):
                self._heap = [entry for entry in self._heap if not entry[2].cancelled]
                heapq.heapify(self._heap)
                self._cancelled_count = 0

    def _ensure_thread(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        daemon = config.DAEMON_TIMERS if self._daemon is None else self._daemon
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=daemon)
        self._thread.start()

    def _next_due(self) -> Timer:
        with self._cond:
            while True:
                while self._heap and self._heap[0][2].cancelled:
                    heapq.heappop(self._heap)
                    self._cancelled_count = max(0, self._cancelled_count - 1)

                if not self._heap:
                    self._cond.wait()
                    continue

                deadline, _, timer = self._heap[0]
                remaining = deadline - _monotonic()
                if remaining <= 0:
                    heapq.heappop(self._heap)
                    return timer

                self._cond.wait(remaining)

    def _run(self) -> None:
        while True:
            # Callbacks run outside the condition so they may schedule again
            self._next_due()._fire()


_scheduler = Scheduler()


def schedule(seconds: float, callback: Callable[[], None]) -> TimerHandle:
    return _scheduler.schedule(seconds, callback)
