"""Cosmetic name cycling shown while idle and during a draw.

Nothing here decides a draw. The animator only picks names to *display*,
from its own random source, and hands control back through ``on_complete``
when the draw animation runs out.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional, Sequence

from .scheduler import Scheduler, TaskHandle
from .selection import RandomSource, SystemRandomSource
from ..config import DEFAULT_DRAW_INTERVAL_MS, DEFAULT_IDLE_INTERVAL_MS, clamp_draw_duration
from ..exceptions import DrawInProgressError, EmptyPoolError

logger = logging.getLogger(__name__)


class AnimatorMode(str, enum.Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    HOLDING = "holding"
    CLOSED = "closed"


def draw_tick_budget(duration: float, draw_interval: float) -> int:
    """Number of name changes that fit in ``duration`` seconds (at least one)."""
    duration_ms = int(round(clamp_draw_duration(duration) * 1000))
    interval_ms = max(1, int(round(draw_interval * 1000)))
    return max(1, duration_ms // interval_ms)


class PresentationAnimator:
    """Drives the displayed name from a :class:`Scheduler`.

    Modes:

    ``IDLE``
        Shows a random pool name every ``idle_interval`` while the pool is
        non-empty; shows ``None`` when it is empty.
    ``DRAWING``
        Shows a random snapshot name every ``draw_interval`` until the tick
        budget is spent, then calls ``on_complete``.
    ``HOLDING``
        Keeps the revealed winner on screen until :meth:`resume`.
    ``CLOSED``
        Terminal; every timer has been released.

    ``on_display`` and ``on_complete`` are always called without the
    animator's lock held.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        on_display: Callable[[Optional[str]], None],
        random_source: Optional[RandomSource] = None,
        idle_interval: float = DEFAULT_IDLE_INTERVAL_MS / 1000,
        draw_interval: float = DEFAULT_DRAW_INTERVAL_MS / 1000,
    ) -> None:
        if idle_interval <= 0 or draw_interval <= 0:
            raise ValueError("Animation intervals must be positive")
        self._scheduler = scheduler
        self._on_display = on_display
        self._random = random_source or SystemRandomSource()
        self._idle_interval = idle_interval
        self._draw_interval = draw_interval

        self._lock = threading.RLock()
        self._mode = AnimatorMode.IDLE
        self._pool: list[str] = []
        self._display: Optional[str] = None
        self._idle_handle: Optional[TaskHandle] = None
        self._draw_handle: Optional[TaskHandle] = None

    # -------- state --------
    @property
    def mode(self) -> AnimatorMode:
        return self._mode

    @property
    def display_name(self) -> Optional[str]:
        return self._display

    @property
    def is_idle_cycling(self) -> bool:
        return self._idle_handle is not None

    @property
    def is_draw_cycling(self) -> bool:
        return self._draw_handle is not None

    # -------- idle cycling --------
    def update_pool(self, names: Sequence[str]) -> None:
        """Replace the names used for idle cycling."""
        clear_display = False
        with self._lock:
            if self._mode is AnimatorMode.CLOSED:
                return
            self._pool = list(names)
            if not self._pool:
                self._stop_idle_locked()
                clear_display = self._mode is AnimatorMode.IDLE
            elif self._mode is AnimatorMode.IDLE:
                self._start_idle_locked()
        if clear_display:
            self._show(None)

    def _start_idle_locked(self) -> None:
        if self._idle_handle is None and self._pool:
            self._idle_handle = self._scheduler.call_every(self._idle_interval, self._idle_tick)
            logger.debug("Idle cycling started over %d name(s)", len(self._pool))

    def _stop_idle_locked(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None
            logger.debug("Idle cycling stopped")

    def _idle_tick(self) -> None:
        with self._lock:
            if self._mode is not AnimatorMode.IDLE or not self._pool:
                self._stop_idle_locked()
                return
            name = self._pool[self._random.randbelow(len(self._pool))]
        self._show(name)

    # -------- draw cycling --------
    def start_draw(
        self,
        snapshot: Sequence[str],
        duration: float,
        on_complete: Callable[[], None],
    ) -> int:
        """Start the fast shuffle over ``snapshot``.

        Returns the number of ticks that will run before ``on_complete``.

        Raises
        ------
        DrawInProgressError
            If a draw animation is already running or the animator is closed.
        EmptyPoolError
            If ``snapshot`` is empty.
        """
        names = list(snapshot)
        if not names:
            raise EmptyPoolError()
        budget = draw_tick_budget(duration, self._draw_interval)
        ticks = 0
        handle: Optional[TaskHandle] = None

        def tick() -> None:
            nonlocal ticks
            with self._lock:
                # A late tick from a cancelled draw must not count toward this one.
                if handle is None or self._draw_handle is not handle:
                    return
                name = names[self._random.randbelow(len(names))]
                ticks += 1
                done = ticks >= budget
                if done:
                    self._draw_handle.cancel()
                    self._draw_handle = None
                    self._mode = AnimatorMode.HOLDING
            self._show(name)
            if done:
                self._complete(on_complete)

        with self._lock:
            if self._mode in (AnimatorMode.DRAWING, AnimatorMode.CLOSED):
                raise DrawInProgressError(f"Animator is {self._mode.value}")
            self._stop_idle_locked()
            self._mode = AnimatorMode.DRAWING
            handle = self._scheduler.call_every(self._draw_interval, tick)
            self._draw_handle = handle
        logger.debug("Draw animation started: %d tick(s) over %d name(s)", budget, len(names))
        return budget

    def _complete(self, on_complete: Callable[[], None]) -> None:
        try:
            on_complete()
        except Exception:
            # Nothing was revealed; go back to idle cycling before propagating.
            self.resume()
            raise

    def cancel_draw(self) -> None:
        """Stop a running draw animation without calling ``on_complete``."""
        with self._lock:
            if self._draw_handle is None:
                return
            self._draw_handle.cancel()
            self._draw_handle = None
            self._mode = AnimatorMode.IDLE
            self._start_idle_locked()

    # -------- reveal --------
    def reveal(self, name: str) -> None:
        """Show the authoritative winner and hold it until :meth:`resume`."""
        with self._lock:
            if self._mode is AnimatorMode.CLOSED:
                return
            if self._draw_handle is not None:
                self._draw_handle.cancel()
                self._draw_handle = None
            self._stop_idle_locked()
            self._mode = AnimatorMode.HOLDING
        self._show(name)

    def resume(self) -> None:
        """Leave ``HOLDING`` and go back to idle cycling."""
        clear_display = False
        with self._lock:
            if self._mode in (AnimatorMode.CLOSED, AnimatorMode.DRAWING):
                return
            self._mode = AnimatorMode.IDLE
            if self._pool:
                self._start_idle_locked()
            else:
                clear_display = True
        if clear_display:
            self._show(None)

    def close(self) -> None:
        """Release every timer. The animator cannot be restarted."""
        with self._lock:
            if self._draw_handle is not None:
                self._draw_handle.cancel()
                self._draw_handle = None
            self._stop_idle_locked()
            self._mode = AnimatorMode.CLOSED

    def _show(self, name: Optional[str]) -> None:
        with self._lock:
            self._display = name
        self._on_display(name)


__all__ = ["AnimatorMode", "PresentationAnimator", "draw_tick_budget"]
