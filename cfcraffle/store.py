"""Participant pool and winner ledger on top of a :class:`RaffleRepository`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from .exceptions import EmptyInputError, ParticipantNotFoundError
from .models import Participant, Winner
from .pool import normalize_names, resolve_duplicates
from .pool.dedupe import name_key
from .repository import RaffleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddResult:
    """Counts reported back after names were added to the pool."""

    added: int
    skipped: int


class ParticipantStore:
    """Active participant pool."""

    def __init__(self, repository: RaffleRepository) -> None:
        self._repository = repository

    def add_batch(self, names: Sequence[str]) -> int:
        """Insert ``names`` as new participants and return how many were stored.

        Names are expected to be resolved already; none is rejected here. A
        storage failure aborts the whole batch.
        """
        if not names:
            return 0
        with self._repository.transaction():
            inserted = self._repository.insert_participants(list(names))
        logger.debug("Added %d participant(s)", len(inserted))
        return len(inserted)

    def submit_names(self, raw_text: str) -> AddResult:
        """Run pasted text through normalization and duplicate resolution, then store it.

        Notes
        -----
        The pool is re-read inside the same transaction as the insert, but
        nothing stops a second caller from inserting the same new name in
        between. Concurrent submissions of one name may therefore both
        succeed.

        Raises
        ------
        EmptyInputError
            If ``raw_text`` contains no non-empty line.
        AllDuplicatesError
            If every candidate is already in the pool or repeated.
        """
        candidates = normalize_names(raw_text)
        if not candidates:
            raise EmptyInputError()

        with self._repository.transaction():
            existing = [p.name for p in self._repository.list_participants()]
            resolution = resolve_duplicates(candidates, existing)
            added = self.add_batch(resolution.to_insert)

        if resolution.skipped:
            logger.debug("Skipped %d duplicate name(s)", resolution.skipped)
        return AddResult(added=added, skipped=resolution.skipped)

    def remove(self, participant_id: int, *, missing_ok: bool = False) -> bool:
        """Delete one participant.

        Returns ``False`` only when ``missing_ok`` is set and nothing matched.
        """
        removed = self._repository.delete_participant(participant_id)
        if not removed:
            if missing_ok:
                return False
            raise ParticipantNotFoundError(participant_id)
        logger.debug("Removed participant %s", participant_id)
        return True

    def clear_all(self) -> int:
        count = self._repository.delete_all_participants()
        if count:
            logger.info("Cleared %d participant(s)", count)
        return count

    def list(self, search: Optional[str] = None) -> list[Participant]:
        """Return participants, most recently created first.

        ``search`` keeps only names containing it, ignoring case.
        """
        participants = self._repository.list_participants()
        if search:
            needle = name_key(search.strip())
            participants = [p for p in participants if needle in name_key(p.name)]
        return participants

    def names(self) -> list[str]:
        return [p.name for p in self._repository.list_participants()]

    def __len__(self) -> int:
        return len(self._repository.list_participants())


class WinnerLedger:
    """Append-only history of draw outcomes."""

    def __init__(self, repository: RaffleRepository) -> None:
        self._repository = repository

    def record(
        self,
        name: str,
        *,
        participant_ref: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
    ) -> Winner:
        return self._repository.insert_winner(
            name, participant_ref=participant_ref, drawn_at=drawn_at
        )

    def list(self) -> list[Winner]:
        """Return past winners, most recent first."""
        return self._repository.list_winners()

    def clear(self) -> int:
        count = self._repository.clear_winners()
        if count:
            logger.info("Cleared %d winner record(s)", count)
        return count


__all__ = ["AddResult", "ParticipantStore", "WinnerLedger"]
