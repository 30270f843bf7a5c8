"""Persistence collaborator for participants and the winner ledger."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Protocol, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import StorageFailureError
from .models import Participant, Winner

logger = logging.getLogger(__name__)


class RaffleRepository(Protocol):
    """Storage operations the raffle core relies on.

    Every method is individually atomic. :meth:`transaction` groups several
    calls; ``transactional`` tells callers whether a failure inside that
    group rolls back the calls that already succeeded.
    """

    transactional: bool

    def transaction(self): ...

    def list_participants(self) -> list[Participant]: ...

    def insert_participants(self, names: Sequence[str]) -> list[Participant]: ...

    def delete_participant(self, participant_id: int) -> bool: ...

    def delete_all_participants(self) -> int: ...

    def list_winners(self) -> list[Winner]: ...

    def insert_winner(
        self,
        name: str,
        *,
        participant_ref: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
    ) -> Winner: ...

    def clear_winners(self) -> int: ...

    def list_drawn_participants(self) -> list[Participant]: ...


class SQLAlchemyRaffleRepository:
    """:class:`RaffleRepository` backed by a SQLAlchemy session.

    The repository either owns its transactions, opening one short-lived
    session per call (or per :meth:`transaction` block) from
    ``session_factory``, or is bound to a caller-managed ``session`` whose
    transaction boundaries the caller controls, as the functions in
    :mod:`cfcraffle.workflows` do.
    """

    transactional = True

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        *,
        session: Optional[Session] = None,
    ) -> None:
        if (session_factory is None) == (session is None):
            raise ValueError("Provide exactly one of session_factory or session")
        self._session_factory = session_factory
        self._bound_session = session
        self._active: Optional[Session] = None

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield the session all calls inside the block share.

        Nested blocks reuse the outer session. When the repository owns the
        session, leaving the outermost block commits, and any exception rolls
        back everything done inside it.
        """
        if self._bound_session is not None:
            yield self._bound_session
            return
        if self._active is not None:
            yield self._active
            return

        assert self._session_factory is not None
        session = self._session_factory()
        self._active = session
        try:
            with session.begin():
                yield session
        except SQLAlchemyError as exc:
            logger.error("Raffle transaction failed and was rolled back: %s", exc)
            raise StorageFailureError(f"Storage operation failed: {exc}") from exc
        finally:
            self._active = None
            session.close()

    @contextmanager
    def _guard(self, action: str) -> Iterator[Session]:
        with self.transaction() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                logger.error("Failed to %s: %s", action, exc)
                raise StorageFailureError(f"Failed to {action}: {exc}") from exc

    # -------- participants --------
    def list_participants(self) -> list[Participant]:
        with self._guard("list participants") as session:
            stmt = select(Participant).order_by(
                Participant.created_at.desc(), Participant.id.desc()
            )
            return list(session.scalars(stmt))

    def insert_participants(self, names: Sequence[str]) -> list[Participant]:
        with self._guard("insert participants") as session:
            participants = [Participant(name=name) for name in names]
            session.add_all(participants)
            session.flush()
            return participants

    def delete_participant(self, participant_id: int) -> bool:
        with self._guard("delete participant") as session:
            participant = session.get(Participant, participant_id)
            if participant is None:
                return False
            session.delete(participant)
            session.flush()
            return True

    def delete_all_participants(self) -> int:
        with self._guard("delete all participants") as session:
            result = session.execute(delete(Participant))
            return int(result.rowcount or 0)

    def list_drawn_participants(self) -> list[Participant]:
        """Return active participants that already have a ledger entry."""
        with self._guard("inspect interrupted draws") as session:
            refs = select(Winner.participant_ref).where(
                Winner.participant_ref.is_not(None)
            )
            stmt = select(Participant).where(Participant.id.in_(refs))
            return list(session.scalars(stmt))

    # -------- winners --------
    def list_winners(self) -> list[Winner]:
        with self._guard("list winners") as session:
            stmt = select(Winner).order_by(Winner.drawn_at.desc(), Winner.id.desc())
            return list(session.scalars(stmt))

    def insert_winner(
        self,
        name: str,
        *,
        participant_ref: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
    ) -> Winner:
        with self._guard("record winner") as session:
            winner = Winner(name=name, participant_ref=participant_ref, drawn_at=drawn_at)
            session.add(winner)
            session.flush()
            return winner

    def clear_winners(self) -> int:
        with self._guard("clear winners") as session:
            result = session.execute(delete(Winner))
            return int(result.rowcount or 0)


__all__ = ["RaffleRepository", "SQLAlchemyRaffleRepository"]
