from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ..config import ROOT_DIR, RaffleSettings
from .utils import resolve_sqlite_url


def make_engine(
    database_url: Optional[str] = None,
    echo: bool = False,
    settings: Optional[RaffleSettings] = None,
):
    """Create the SQLAlchemy engine for the raffle database.

    ``database_url`` wins over ``settings.database_url``; both fall back to the
    ``DB_URL`` environment variable read by :meth:`RaffleSettings.from_env`.
    """
    settings = settings or RaffleSettings.from_env()
    url = resolve_sqlite_url(database_url or settings.database_url, ROOT_DIR)
    connect_args = {}
    if url.startswith("sqlite"):
        # Bound how long a locked sqlite file may stall a store operation.
        connect_args["timeout"] = settings.db_timeout
        # Draw commits run on the animation timer thread.
        connect_args["check_same_thread"] = False
    engine = create_engine(
        url,
        echo=echo,
        future=True,
        connect_args=connect_args,
    )
    return engine


def get_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep rows readable after the intent's transaction closes
        future=True,
    )
