"""State machine that commits draw outcomes to the pool and the ledger."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .selection import RandomSource, SystemRandomSource, select_winner
from ..exceptions import DrawInProgressError, DrawVoidedError, StorageFailureError
from ..models import Winner
from ..repository import RaffleRepository

logger = logging.getLogger(__name__)


class DrawState(str, enum.Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    SETTLED = "settled"


@dataclass(frozen=True)
class DrawTicket:
    """Authoritative selection made when a draw begins.

    Attributes
    ----------
    participant_id : int
        Id of the selected participant.
    name : str
        Name of the selected participant at selection time.
    index : int
        Position of the selection within ``snapshot``.
    snapshot : tuple[str, ...]
        Names in the pool when the draw began, in store order.
    """

    participant_id: int
    name: str
    index: int
    snapshot: tuple[str, ...]


@dataclass(frozen=True)
class DrawOutcome:
    """Committed result of a draw."""

    name: str
    participant_id: int
    winner_id: int
    drawn_at: datetime


class DrawEngine:
    """Engine that selects a winner and moves it from the pool into the ledger.

    The engine moves through ``IDLE -> DRAWING -> SETTLED -> IDLE``. The
    winner is fixed by :meth:`begin`; :meth:`commit` only persists it, so any
    animation shown in between cannot influence the result.
    """

    def __init__(
        self,
        repository: RaffleRepository,
        *,
        random_source: Optional[RandomSource] = None,
    ) -> None:
        """Create a draw engine bound to a repository.

        Parameters
        ----------
        repository : RaffleRepository
            Storage for participants and winners.
        random_source : Optional[RandomSource], default: None
            Source used for the authoritative pick. Defaults to
            :class:`SystemRandomSource`.
        """

        self._repository = repository
        self._random = random_source or SystemRandomSource()
        self._state = DrawState.IDLE
        self._ticket: Optional[DrawTicket] = None
        self._outcome: Optional[DrawOutcome] = None
        self._ledger_entry: Optional[Winner] = None
        self._removed = False

    @property
    def state(self) -> DrawState:
        return self._state

    @property
    def ticket(self) -> Optional[DrawTicket]:
        return self._ticket

    @property
    def outcome(self) -> Optional[DrawOutcome]:
        return self._outcome

    @property
    def has_partial_commit(self) -> bool:
        """``True`` when a failed commit left one of its two steps persisted."""
        return self._ledger_entry is not None or self._removed

    def begin(self) -> DrawTicket:
        """Snapshot the pool and select the winner.

        Raises
        ------
        DrawInProgressError
            If the engine is not idle.
        EmptyPoolError
            If the pool is empty. The engine stays idle and the ledger is
            not touched.
        """
        if self._state is not DrawState.IDLE:
            raise DrawInProgressError(f"Cannot start a draw while {self._state.value}")

        pool = self._repository.list_participants()
        index = select_winner(pool, self._random)
        chosen = pool[index]
        self._ticket = DrawTicket(
            participant_id=chosen.id,
            name=chosen.name,
            index=index,
            snapshot=tuple(p.name for p in pool),
        )
        self._outcome = None
        self._ledger_entry = None
        self._removed = False
        self._state = DrawState.DRAWING
        logger.debug("Draw started with %d participant(s)", len(pool))
        return self._ticket

    def commit(self) -> DrawOutcome:
        """Record the selected participant as winner and remove it from the pool.

        Both steps run inside one repository transaction. When the repository
        is not transactional the ledger entry is written first, and a retried
        commit resumes after whichever step already succeeded, so the ledger
        never gets a second entry for one draw and the participant is never
        removed without a record.

        Raises
        ------
        DrawInProgressError
            If no draw has begun.
        DrawVoidedError
            If the selected participant was removed from the pool after
            :meth:`begin`. The engine goes back to ``IDLE``.
        StorageFailureError
            If either step fails. The engine stays in ``DRAWING`` so the
            commit can be retried.
        """
        if self._state is not DrawState.DRAWING or self._ticket is None:
            raise DrawInProgressError("No draw is waiting to be committed")

        ticket = self._ticket
        # Only a non-transactional repository keeps a ledger entry across attempts.
        resuming = self._ledger_entry is not None
        try:
            with self._repository.transaction():
                if self._ledger_entry is None:
                    if not self._in_pool(ticket.participant_id):
                        raise DrawVoidedError(ticket.participant_id)
                    self._ledger_entry = self._repository.insert_winner(
                        ticket.name, participant_ref=ticket.participant_id
                    )
                if not self._removed:
                    removed = self._repository.delete_participant(ticket.participant_id)
                    # On resume a missing row means the failed attempt's delete went through.
                    if not removed and not resuming:
                        raise DrawVoidedError(ticket.participant_id)
                    self._removed = True
        except DrawVoidedError:
            orphan = None if self._repository.transactional else self._ledger_entry
            self._reset()
            if orphan is not None:
                logger.error(
                    "Ledger entry %s names participant %s, who was removed by someone else",
                    orphan.id,
                    ticket.participant_id,
                )
            else:
                logger.warning(
                    "Draw voided: participant %s left the pool before the draw was committed",
                    ticket.participant_id,
                )
            raise
        except StorageFailureError:
            if self._repository.transactional:
                self._ledger_entry = None
                self._removed = False
            logger.error(
                "Committing draw of participant %s failed (ledger written: %s, removed: %s)",
                ticket.participant_id,
                self._ledger_entry is not None,
                self._removed,
            )
            raise

        entry = self._ledger_entry
        assert entry is not None
        self._outcome = DrawOutcome(
            name=entry.name,
            participant_id=ticket.participant_id,
            winner_id=entry.id,
            drawn_at=entry.drawn_at,
        )
        self._state = DrawState.SETTLED
        logger.info(
            "Drew %r from a pool of %d participant(s)", entry.name, len(ticket.snapshot)
        )
        return self._outcome

    def _in_pool(self, participant_id: int) -> bool:
        return any(p.id == participant_id for p in self._repository.list_participants())

    def _reset(self) -> None:
        self._state = DrawState.IDLE
        self._ticket = None
        self._ledger_entry = None
        self._removed = False

    def draw(self) -> DrawOutcome:
        """Begin and commit a draw in one call, without any animation."""
        self.begin()
        return self.commit()

    def acknowledge(self) -> None:
        """Return to ``IDLE`` once the caller has shown the winner."""
        if self._state is DrawState.DRAWING:
            raise DrawInProgressError("The current draw has not been committed")
        self._reset()

    def abort(self) -> None:
        """Drop a draw that has begun but persisted nothing yet."""
        if self._state is not DrawState.DRAWING:
            return
        if self.has_partial_commit:
            raise DrawInProgressError(
                "The draw is partially committed; retry commit() to finish it"
            )
        self._state = DrawState.IDLE
        self._ticket = None
        logger.debug("Draw aborted before commit")

    def reconcile(self) -> int:
        """Finish draws interrupted between the ledger write and the removal.

        Any participant whose id is referenced by a ledger entry is removed.

        Returns
        -------
        int
            Number of participants removed.
        """
        if self._state is DrawState.DRAWING:
            raise DrawInProgressError("Cannot reconcile while a draw is in progress")
        repaired = 0
        with self._repository.transaction():
            for participant in self._repository.list_drawn_participants():
                logger.warning(
                    "Removing participant %s (%r) left in the pool by an interrupted draw",
                    participant.id,
                    participant.name,
                )
                if self._repository.delete_participant(participant.id):
                    repaired += 1
        return repaired


__all__ = ["DrawEngine", "DrawOutcome", "DrawState", "DrawTicket"]
