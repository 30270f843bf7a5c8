"""Database model for active raffle participants."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, Base, utc_now
from ..db.utils import dt_iso


class Participant(Base):
    """An entrant that is still eligible to be drawn."""

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, index=True, autoincrement=True)
    """Primary key. Opaque to callers beyond uniqueness."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name exactly as first submitted (casing preserved)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    """Timestamp when the participant was added."""

    # Ids must never be reused: ledger entries keep a copy of the drawn id.
    __table_args__ = ({"sqlite_autoincrement": True},)

    def __init__(
        self,
        *,
        name: str,
        created_at: Optional[datetime] = None,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("Participant name must not be empty")
        self.name = name
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Participant(id={id}, name={name!r})>".format(id=self.id, name=self.name)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": dt_iso(self.created_at),
        }


__all__ = ["Participant"]
