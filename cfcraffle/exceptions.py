"""Exceptions raised by the raffle core."""

from __future__ import annotations


class RaffleError(Exception):
    """Base class for every error raised by the raffle core."""


class EmptyInputError(RaffleError):
    """Raised when submitted text contains no non-empty name."""

    def __init__(self, message: str = "At least one name is required") -> None:
        super().__init__(message)


class AllDuplicatesError(RaffleError):
    """Raised when every submitted name is already in the pool or repeated."""

    def __init__(self, skipped: int, message: str = "All names already exist") -> None:
        super().__init__(message)
        self.skipped = skipped


class EmptyPoolError(RaffleError):
    """Raised when a draw is requested while no participant is active."""

    def __init__(self, message: str = "No participants available") -> None:
        super().__init__(message)


class ParticipantNotFoundError(RaffleError):
    """Raised when a participant id does not match any active participant."""

    def __init__(self, participant_id: int, message: str = "Participant not found") -> None:
        super().__init__(message)
        self.participant_id = participant_id


class DrawInProgressError(RaffleError):
    """Raised when a draw operation is invalid for the engine's current state."""


class DrawVoidedError(RaffleError):
    """Raised when the selected participant left the pool before the draw was committed.

    The engine returns to idle. A transactional repository also rolls back
    the ledger entry written for the draw.
    """

    def __init__(
        self,
        participant_id: int,
        message: str = "The selected participant is no longer available",
    ) -> None:
        super().__init__(message)
        self.participant_id = participant_id


class StorageFailureError(RaffleError):
    """Raised when the backing store fails.

    Unlike the other errors this one is not meant to be turned into a
    friendly message: the pool and ledger may disagree until the failed
    operation is retried or reconciled.
    """


__all__ = [
    "AllDuplicatesError",
    "DrawInProgressError",
    "DrawVoidedError",
    "EmptyInputError",
    "EmptyPoolError",
    "ParticipantNotFoundError",
    "RaffleError",
    "StorageFailureError",
]
