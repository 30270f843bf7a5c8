"""One-shot raffle operations on a caller-managed SQLAlchemy session.

These mirror the intents of :class:`~cfcraffle.controller.RaffleController`
for scripts and request handlers that already run inside a transaction.
Each function flushes but never commits; the caller owns the transaction.
"""

from typing import Optional

from sqlalchemy.orm import Session

from .draw.engine import DrawEngine, DrawOutcome
from .draw.selection import RandomSource
from .models import Participant, Winner
from .repository import SQLAlchemyRaffleRepository
from .store import AddResult, ParticipantStore, WinnerLedger


def _repository(session: Session) -> SQLAlchemyRaffleRepository:
    return SQLAlchemyRaffleRepository(session=session)


def add_participants(session: Session, raw_text: str) -> AddResult:
    """Add the names in ``raw_text`` (one per line) to the pool.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    raw_text : str
        Names separated by line breaks. Blank lines are ignored; names already
        in the pool or repeated in the text are skipped, ignoring case.

    Returns
    -------
    AddResult
        Number of names added and number skipped.

    Raises
    ------
    EmptyInputError
        If ``raw_text`` holds no name.
    AllDuplicatesError
        If every name is already present.
    """
    return ParticipantStore(_repository(session)).submit_names(raw_text)


def list_participants(session: Session, search: Optional[str] = None) -> list[Participant]:
    """Return the pool, most recently added first, optionally filtered by ``search``."""
    return ParticipantStore(_repository(session)).list(search=search)


def delete_participant(session: Session, participant_id: int, *, missing_ok: bool = False) -> bool:
    """Remove one participant; raises ``ParticipantNotFoundError`` unless ``missing_ok``."""
    return ParticipantStore(_repository(session)).remove(participant_id, missing_ok=missing_ok)


def clear_all_participants(session: Session) -> int:
    return ParticipantStore(_repository(session)).clear_all()


def draw_winner(session: Session, random_source: Optional[RandomSource] = None) -> DrawOutcome:
    """Select a winner, record it and remove it from the pool.

    Both writes go through ``session``, so they commit or roll back together
    with the caller's transaction.

    Raises
    ------
    EmptyPoolError
        If the pool is empty. Nothing is written.
    DrawVoidedError
        If the selected participant disappears before the ledger entry is
        written. Nothing is written.
    StorageFailureError
        If the database rejects either write.
    """
    return DrawEngine(_repository(session), random_source=random_source).draw()


def list_winners(session: Session) -> list[Winner]:
    """Return past winners, most recent first."""
    return WinnerLedger(_repository(session)).list()


def clear_winners(session: Session) -> int:
    return WinnerLedger(_repository(session)).clear()


def reconcile_interrupted_draws(session: Session) -> int:
    """Remove participants that already have a ledger entry from an interrupted draw."""
    return DrawEngine(_repository(session)).reconcile()


__all__ = [
    "add_participants",
    "clear_all_participants",
    "clear_winners",
    "delete_participant",
    "draw_winner",
    "list_participants",
    "list_winners",
    "reconcile_interrupted_draws",
]
