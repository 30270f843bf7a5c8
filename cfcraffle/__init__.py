"""Raffle core: participant pool, winner ledger and draw engine."""

from .controller import RaffleController, RaffleView
from .draw import DrawEngine, DrawOutcome, DrawState, PresentationAnimator, select_winner
from .exceptions import (
    AllDuplicatesError,
    DrawInProgressError,
    DrawVoidedError,
    EmptyInputError,
    EmptyPoolError,
    ParticipantNotFoundError,
    RaffleError,
    StorageFailureError,
)
from .repository import RaffleRepository, SQLAlchemyRaffleRepository
from .store import AddResult, ParticipantStore, WinnerLedger

__all__ = [
    "AddResult",
    "AllDuplicatesError",
    "DrawEngine",
    "DrawInProgressError",
    "DrawOutcome",
    "DrawState",
    "DrawVoidedError",
    "EmptyInputError",
    "EmptyPoolError",
    "ParticipantNotFoundError",
    "ParticipantStore",
    "PresentationAnimator",
    "RaffleController",
    "RaffleError",
    "RaffleRepository",
    "RaffleView",
    "SQLAlchemyRaffleRepository",
    "StorageFailureError",
    "WinnerLedger",
    "select_winner",
]
