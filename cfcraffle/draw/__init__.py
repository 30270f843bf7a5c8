"""Winner selection, the draw state machine and its cosmetic animation."""

from .animator import PresentationAnimator
from .engine import DrawEngine, DrawOutcome, DrawState, DrawTicket
from .scheduler import ManualScheduler, Scheduler, TaskHandle, ThreadingScheduler
from .selection import (
    RandomSource,
    SeededRandomSource,
    SystemRandomSource,
    select_winner,
)

__all__ = [
    "DrawEngine",
    "DrawOutcome",
    "DrawState",
    "DrawTicket",
    "ManualScheduler",
    "PresentationAnimator",
    "RandomSource",
    "Scheduler",
    "SeededRandomSource",
    "SystemRandomSource",
    "TaskHandle",
    "ThreadingScheduler",
    "select_winner",
]
