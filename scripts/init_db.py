from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from cfcraffle.config import RaffleSettings
from cfcraffle.db.engine import get_sessionmaker, make_engine
from cfcraffle.draw import DrawEngine
from cfcraffle.repository import SQLAlchemyRaffleRepository

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to ``target_revision``."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def repair_interrupted_draws(settings: RaffleSettings) -> int:
    """Remove participants left behind by a draw that stopped mid-commit."""
    engine = make_engine(settings=settings)
    try:
        repository = SQLAlchemyRaffleRepository(get_sessionmaker(engine))
        repaired = DrawEngine(repository).reconcile()
        tables = sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    print("Raffle tables:", ", ".join(tables))
    print(f"Repaired {repaired} interrupted draw(s)")
    return repaired


def main(argv: Optional[list[str]] = None) -> None:
    """Migrate the raffle database (default to head) and repair it."""
    args = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    upgrade_db(args[0] if args else "head")
    repair_interrupted_draws(RaffleSettings.from_env())


if __name__ == "__main__":
    main()
