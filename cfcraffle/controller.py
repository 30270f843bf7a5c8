"""Intent boundary between a raffle screen and the raffle core.

A UI renders :class:`RaffleView` and forwards user intents to
:class:`RaffleController`. The controller owns all screen state; there are
no module-level globals.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import RaffleSettings, clamp_draw_duration
from .draw.animator import PresentationAnimator
from .draw.engine import DrawEngine, DrawOutcome, DrawState
from .draw.scheduler import Scheduler
from .draw.selection import RandomSource
from .exceptions import (
    AllDuplicatesError,
    DrawInProgressError,
    DrawVoidedError,
    EmptyInputError,
    EmptyPoolError,
    ParticipantNotFoundError,
    StorageFailureError,
)
from .models import Participant, Winner
from .pool.dedupe import name_key
from .repository import RaffleRepository
from .store import AddResult, ParticipantStore, WinnerLedger

logger = logging.getLogger(__name__)

DRAW_IN_PROGRESS_MESSAGE = "A draw is in progress"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_added_message(result: AddResult) -> str:
    """Return the confirmation shown after names were added."""
    message = f"Added {_plural(result.added, 'name')}."
    if result.skipped > 0:
        message += f" {_plural(result.skipped, 'duplicate')} skipped."
    return message


@dataclass
class RaffleView:
    """Everything a raffle screen needs to render."""

    participants: list[Participant] = field(default_factory=list)
    winners: list[Winner] = field(default_factory=list)
    display_name: Optional[str] = None
    is_drawing: bool = False
    winner: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    draw_duration: int = 3
    search: str = ""

    @property
    def visible_participants(self) -> list[Participant]:
        """Participants matching ``search``, ignoring case."""
        needle = name_key(self.search.strip())
        if not needle:
            return list(self.participants)
        return [p for p in self.participants if needle in name_key(p.name)]

    @property
    def can_draw(self) -> bool:
        return bool(self.participants) and not self.is_drawing


class RaffleController:
    """Apply UI intents to the raffle core and keep a :class:`RaffleView` current."""

    def __init__(
        self,
        repository: RaffleRepository,
        scheduler: Scheduler,
        *,
        settings: Optional[RaffleSettings] = None,
        draw_random: Optional[RandomSource] = None,
        animation_random: Optional[RandomSource] = None,
        listener: Optional[Callable[[RaffleView], None]] = None,
    ) -> None:
        """Create a controller.

        Parameters
        ----------
        repository : RaffleRepository
            Persistence collaborator, usually a
            :class:`~cfcraffle.repository.SQLAlchemyRaffleRepository` that owns
            its transactions.
        scheduler : Scheduler
            Timer source for the animation.
        settings : Optional[RaffleSettings], default: None
            Animation timings and the initial draw duration. Defaults to
            :class:`RaffleSettings` defaults (the environment is not read).
        draw_random : Optional[RandomSource], default: None
            Source for the authoritative pick.
        animation_random : Optional[RandomSource], default: None
            Source for the cosmetic name cycling. Kept separate from
            ``draw_random``.
        listener : Optional[Callable[[RaffleView], None]], default: None
            Called with a copy of the view after every change.
        """
        settings = settings or RaffleSettings()
        self._lock = threading.RLock()
        self._store = ParticipantStore(repository)
        self._ledger = WinnerLedger(repository)
        self._engine = DrawEngine(repository, random_source=draw_random)
        self._listener = listener
        self._view = RaffleView(draw_duration=clamp_draw_duration(settings.draw_duration))
        self._animator = PresentationAnimator(
            scheduler,
            on_display=self._on_display,
            random_source=animation_random,
            idle_interval=settings.idle_interval,
            draw_interval=settings.draw_interval,
        )

    # -------- state --------
    @property
    def view(self) -> RaffleView:
        with self._lock:
            return self._snapshot()

    @property
    def engine(self) -> DrawEngine:
        return self._engine

    @property
    def animator(self) -> PresentationAnimator:
        return self._animator

    def _snapshot(self) -> RaffleView:
        return dataclasses.replace(
            self._view,
            participants=list(self._view.participants),
            winners=list(self._view.winners),
        )

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self._snapshot())

    def _on_display(self, name: Optional[str]) -> None:
        with self._lock:
            self._view.display_name = name
            self._notify()

    def refresh(self) -> RaffleView:
        """Reload participants and winners from storage."""
        with self._lock:
            self._view.participants = self._store.list()
            self._view.winners = self._ledger.list()
            self._animator.update_pool([p.name for p in self._view.participants])
            self._notify()
            return self._snapshot()

    def _drawing(self) -> bool:
        return self._engine.state is DrawState.DRAWING

    # -------- participant intents --------
    def add(self, text: str) -> Optional[AddResult]:
        """Add names typed one per line. Returns ``None`` when nothing was added."""
        with self._lock:
            self._view.error = None
            try:
                result = self._store.submit_names(text)
            except (EmptyInputError, AllDuplicatesError) as exc:
                self._view.message = str(exc)
                self._notify()
                return None
            self._view.message = format_added_message(result)
            self.refresh()
            return result

    def delete(self, participant_id: int) -> bool:
        with self._lock:
            if self._drawing():
                self._view.message = DRAW_IN_PROGRESS_MESSAGE
                self._notify()
                return False
            try:
                self._store.remove(participant_id)
            except ParticipantNotFoundError as exc:
                self._view.message = str(exc)
                self._notify()
                return False
            self.refresh()
            return True

    def clear_all(self) -> int:
        with self._lock:
            if self._drawing():
                self._view.message = DRAW_IN_PROGRESS_MESSAGE
                self._notify()
                return 0
            count = self._store.clear_all()
            self.refresh()
            return count

    def clear_message(self) -> None:
        with self._lock:
            self._view.message = None
            self._notify()

    def search(self, query: str) -> RaffleView:
        with self._lock:
            self._view.search = query or ""
            self._notify()
            return self._snapshot()

    # -------- draw intents --------
    def set_draw_duration(self, seconds: object) -> int:
        """Set the draw animation length; out-of-range values are clamped to 1-30."""
        with self._lock:
            self._view.draw_duration = clamp_draw_duration(seconds)
            self._notify()
            return self._view.draw_duration

    def draw(self) -> bool:
        """Start a draw: fix the winner now, reveal it when the animation ends.

        Returns ``False`` (with a message on the view) when no draw started.
        """
        with self._lock:
            if self._drawing():
                self._view.message = DRAW_IN_PROGRESS_MESSAGE
                self._notify()
                return False
            if self._engine.state is DrawState.SETTLED:
                self.dismiss_winner()
            self._view.error = None
            try:
                ticket = self._engine.begin()
            except EmptyPoolError as exc:
                self._view.message = str(exc)
                self._notify()
                return False
            self._view.is_drawing = True
            self._view.message = None
            self._notify()
            try:
                self._animator.start_draw(
                    ticket.snapshot, self._view.draw_duration, self._finish_draw
                )
            except DrawInProgressError:
                self._engine.abort()
                self._view.is_drawing = False
                self._notify()
                raise
            return True

    def _finish_draw(self) -> Optional[DrawOutcome]:
        with self._lock:
            try:
                outcome = self._engine.commit()
            except DrawVoidedError as exc:
                self._view.is_drawing = False
                self._view.winner = None
                self._view.message = str(exc)
                self._animator.resume()
                self.refresh()
                return None
            except StorageFailureError as exc:
                self._view.is_drawing = False
                self._view.winner = None
                self._view.error = str(exc)
                self._notify()
                raise
            self._view.is_drawing = False
            self._view.winner = outcome.name
            self._animator.reveal(outcome.name)
            self.refresh()
            return outcome

    def retry_draw(self) -> Optional[DrawOutcome]:
        """Retry committing a draw whose commit failed, without animating again."""
        with self._lock:
            if not self._drawing() or self._animator.is_draw_cycling:
                return None
            self._view.is_drawing = True
            self._view.error = None
            return self._finish_draw()

    def dismiss_winner(self) -> None:
        with self._lock:
            if self._engine.state is DrawState.SETTLED:
                self._engine.acknowledge()
            self._view.winner = None
            self._animator.resume()
            self._notify()

    # -------- history --------
    def clear_winners(self) -> int:
        with self._lock:
            count = self._ledger.clear()
            self._view.winners = self._ledger.list()
            self._notify()
            return count

    def close(self) -> None:
        """Stop every animation timer; call when the screen is torn down."""
        with self._lock:
            if self._drawing() and not self._engine.has_partial_commit:
                self._engine.abort()
                self._view.is_drawing = False
        self._animator.close()


__all__ = ["RaffleController", "RaffleView", "format_added_message"]
