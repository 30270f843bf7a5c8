"""Database model for the winner ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, Base, utc_now
from ..db.utils import dt_iso


class Winner(Base):
    """Append-only record of a past draw outcome."""

    __tablename__ = "winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, index=True, autoincrement=True)
    """Surrogate primary key."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Copy of the drawn participant's name; survives the participant's deletion."""

    participant_ref: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    """Id the participant had when drawn.

    Deliberately not a foreign key: the participant row is deleted as part of
    the same draw. A ledger row whose ``participant_ref`` still matches an
    active participant marks an interrupted draw.
    """

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    """Timestamp of the draw."""

    __table_args__ = (Index("ix_winners_drawn_at", "drawn_at"),)

    def __init__(
        self,
        *,
        name: str,
        participant_ref: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
    ) -> None:
        self.name = name
        self.participant_ref = participant_ref
        if drawn_at is not None:
            self.drawn_at = drawn_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Winner(id={id}, name={name!r}, drawn_at={drawn_at})>".format(
            id=self.id,
            name=self.name,
            drawn_at=self.drawn_at,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "drawn_at": dt_iso(self.drawn_at),
        }


__all__ = ["Winner"]
