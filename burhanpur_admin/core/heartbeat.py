"""
Scheduled tasks for polling and debounced refreshes.

Views never touch threading.Timer directly: they ask a Scheduler for one-shot
or recurring callbacks and cancel the returned handle on teardown.
ThreadingScheduler is the real clock; ManualScheduler moves a virtual clock
forward on demand.
"""

import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from util.logging import logger


def _run_isolated(name: str, func: Callable[[], None]) -> None:
    """Run a task; errors are logged and never escape into the timer machinery."""
    start_time = time.monotonic()
    try:
        func()
    except Exception as e:
        duration = time.monotonic() - start_time
        logger.error(f"Scheduled task '{name}' failed after {duration:.2f}s: {e}")


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, name: str, on_cancel: Optional[Callable[[], None]] = None):
        self.name = name
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel:
            self._on_cancel()


class Scheduler(ABC):
    """Abstract interface for time and timers."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic seconds."""
        pass

    @abstractmethod
    def call_later(self, delay: float, func: Callable[[], None], name: str = "task") -> TimerHandle:
        pass

    @abstractmethod
    def call_every(self, interval: float, func: Callable[[], None], name: str = "task") -> TimerHandle:
        pass


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon threads and time.monotonic()."""

    def __init__(self):
        self._handles: List[TimerHandle] = []
        self._lock = threading.Lock()

    def now(self) -> float:
        return time.monotonic()

    def _track(self, handle: TimerHandle) -> TimerHandle:
        with self._lock:
            self._handles = [h for h in self._handles if not h.cancelled]
            self._handles.append(handle)
        return handle

    def _forget(self, handle: TimerHandle) -> None:
        with self._lock:
            if handle in self._handles:
                self._handles.remove(handle)

    def call_later(self, delay, func, name="task"):
        def fire():
            try:
                _run_isolated(name, func)
            finally:
                self._forget(handle)

        timer = threading.Timer(max(0.0, delay), fire)
        timer.daemon = True
        handle = TimerHandle(name, on_cancel=timer.cancel)
        # Tracked before start so a zero-delay timer cannot finish first
        self._track(handle)
        timer.start()
        return handle

    def call_every(self, interval, func, name="task"):
        if interval <= 0:
            raise ValueError(f"Interval must be > 0: {interval}")

        shutdown_event = threading.Event()

        def loop():
            # Event.wait doubles as an interruptible sleep
            while not shutdown_event.wait(interval):
                _run_isolated(name, func)

        thread = threading.Thread(target=loop, name=f"poll-{name}", daemon=True)
        handle = TimerHandle(name, on_cancel=shutdown_event.set)
        thread.start()
        return self._track(handle)

    def pending(self) -> int:
        """Number of live scheduled callbacks."""
        with self._lock:
            return sum(1 for h in self._handles if not h.cancelled)

    def shutdown(self) -> None:
        """Cancel everything still scheduled."""
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()


class _ManualTask:
    def __init__(self, name, func, interval):
        self.name = name
        self.func = func
        self.interval = interval
        self.handle = TimerHandle(name)


class ManualScheduler(Scheduler):
    """Virtual clock; callbacks run only inside advance(), in due-time order."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def _push(self, due: float, task: _ManualTask) -> None:
        heapq.heappush(self._queue, (due, next(self._counter), task))

    def call_later(self, delay, func, name="task"):
        task = _ManualTask(name, func, None)
        self._push(self._now + max(0.0, delay), task)
        return task.handle

    def call_every(self, interval, func, name="task"):
        if interval <= 0:
            raise ValueError(f"Interval must be > 0: {interval}")
        task = _ManualTask(name, func, interval)
        self._push(self._now + interval, task)
        return task.handle

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.handle.cancelled:
                continue
            self._now = due
            _run_isolated(task.name, task.func)
            if task.interval is not None and not task.handle.cancelled:
                self._push(due + task.interval, task)
        self._now = target

    def pending(self) -> int:
        """Number of live scheduled callbacks."""
        return sum(1 for _, _, task in self._queue if not task.handle.cancelled)
