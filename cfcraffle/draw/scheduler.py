"""Cancellable repeating tasks used to drive the name animation."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TaskHandle:
    """Handle to a repeating task. Cancelling is idempotent."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._on_cancel = on_cancel
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callback, self._on_cancel = self._on_cancel, None
        if callback is not None:
            callback()


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        """Run ``callback`` every ``interval`` seconds until the handle is cancelled."""
        ...


def _check_interval(interval: float) -> None:
    if interval <= 0:
        raise ValueError("interval must be positive")


class ThreadingScheduler:
    """Scheduler running each task on its own daemon thread.

    A callback that raises is logged and its task is cancelled; the thread
    never outlives the handle.
    """

    def __init__(self) -> None:
        self._threads: set[threading.Thread] = set()
        self._handles: set[TaskHandle] = set()
        self._lock = threading.Lock()

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        _check_interval(interval)
        stop = threading.Event()
        handle = TaskHandle(on_cancel=stop.set)

        def run() -> None:
            try:
                while not stop.wait(interval):
                    try:
                        callback()
                    except Exception:
                        logger.exception("Scheduled callback %r failed; cancelling task", callback)
                        handle.cancel()
            finally:
                with self._lock:
                    self._threads.discard(threading.current_thread())
                    self._handles.discard(handle)

        thread = threading.Thread(target=run, name="cfcraffle-timer", daemon=True)
        with self._lock:
            self._threads.add(thread)
            self._handles.add(handle)
        thread.start()
        return handle

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Cancel every task and wait for the worker threads to exit."""
        with self._lock:
            handles = list(self._handles)
            threads = list(self._threads)
        for handle in handles:
            handle.cancel()
        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join(timeout)


@dataclass
class _ManualTask:
    interval: float
    callback: Callable[[], None]
    next_run: float
    seq: int
    handle: TaskHandle = field(default_factory=TaskHandle)


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`.

    Callbacks run synchronously on the caller's thread, in due-time order.
    If a callback raises, its task is cancelled and the error propagates out
    of :meth:`advance`.
    """

    _EPSILON = 1e-9

    def __init__(self) -> None:
        self._now = 0.0
        self._tasks: list[_ManualTask] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def active_tasks(self) -> int:
        return sum(1 for task in self._tasks if not task.handle.cancelled)

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        _check_interval(interval)
        task = _ManualTask(
            interval=interval,
            callback=callback,
            next_run=self._now + interval,
            seq=next(self._counter),
        )
        self._tasks.append(task)
        return task.handle

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = [
                task
                for task in self._tasks
                if not task.handle.cancelled and task.next_run <= target + self._EPSILON
            ]
            if not due:
                break
            task = min(due, key=lambda t: (t.next_run, t.seq))
            self._now = task.next_run
            task.next_run += task.interval
            try:
                task.callback()
            except Exception:
                task.handle.cancel()
                raise
            finally:
                self._tasks = [t for t in self._tasks if not t.handle.cancelled]
        self._now = max(self._now, target)


__all__ = ["ManualScheduler", "Scheduler", "TaskHandle", "ThreadingScheduler"]
