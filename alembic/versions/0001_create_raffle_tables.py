"""create participants and winners

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "participants",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_participants")),
        sqlite_autoincrement=True,
    )
    op.create_index(op.f("ix_participants_id"), "participants", ["id"], unique=False)

    op.create_table(
        "winners",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("participant_ref", ID_TYPE, nullable=True),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_winners")),
    )
    op.create_index(op.f("ix_winners_id"), "winners", ["id"], unique=False)
    op.create_index("ix_winners_drawn_at", "winners", ["drawn_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_winners_drawn_at", table_name="winners")
    op.drop_index(op.f("ix_winners_id"), table_name="winners")
    op.drop_table("winners")
    op.drop_index(op.f("ix_participants_id"), table_name="participants")
    op.drop_table("participants")
