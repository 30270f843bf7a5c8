import logging
from datetime import datetime, timedelta, timezone

from cfcraffle.db.engine import get_sessionmaker, make_engine
from cfcraffle.models import Base, Winner
from cfcraffle.workflows import add_participants

SAMPLE_NAMES = """
Alice
Bob
Charlie
Dana
Eve
Frank
Grace
Heidi
"""


def main() -> None:
    """Reset the development database and fill it with sample participants."""
    logging.basicConfig(level=logging.INFO)
    engine = make_engine()

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        result = add_participants(session, SAMPLE_NAMES)

        # A couple of past draws so the history view is not empty
        session.add_all(
            [
                Winner(name="Mallory", drawn_at=now - timedelta(days=1)),
                Winner(name="Trent", drawn_at=now - timedelta(hours=2)),
            ]
        )

    print(f"Seeded {result.added} participants and 2 past winners.")


if __name__ == "__main__":
    main()
