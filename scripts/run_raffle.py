"""Terminal front end for the raffle, for manual testing.

Commands: ``add NAME[;NAME...]``, ``del ID``, ``clear``, ``draw``,
``duration SECONDS``, ``ok`` (dismiss winner), ``list [SEARCH]``,
``history``, ``clear-history``, ``quit``.
"""

from __future__ import annotations

import logging
import time

from cfcraffle.config import RaffleSettings
from cfcraffle.controller import RaffleController, RaffleView
from cfcraffle.db.engine import get_sessionmaker, make_engine
from cfcraffle.draw import ThreadingScheduler
from cfcraffle.models import Base
from cfcraffle.repository import SQLAlchemyRaffleRepository


def _print_view(view: RaffleView) -> None:
    print(f"\r{(view.display_name or '?'):<40}", end="", flush=True)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = RaffleSettings.from_env()
    engine = make_engine(settings=settings)
    Base.metadata.create_all(engine)
    repository = SQLAlchemyRaffleRepository(get_sessionmaker(engine))
    scheduler = ThreadingScheduler()
    controller = RaffleController(repository, scheduler, settings=settings)
    controller.engine.reconcile()
    controller.refresh()

    try:
        while True:
            try:
                line = input("\n> ").strip()
            except EOFError:
                break
            command, _, arg = line.partition(" ")
            if command == "quit":
                break
            elif command == "add":
                controller.add(arg.replace(";", "\n"))
            elif command == "del" and arg.isdigit():
                controller.delete(int(arg))
            elif command == "clear":
                controller.clear_all()
            elif command == "duration":
                print(f"Draw duration: {controller.set_draw_duration(arg)}s")
            elif command == "draw":
                if controller.draw():
                    while controller.view.is_drawing:
                        _print_view(controller.view)
                        time.sleep(0.05)
                    view = controller.view
                    if view.winner:
                        print(f"\nWinner: {view.winner}  (type 'ok' to continue)")
                    elif view.error:
                        print(f"\nDraw failed: {view.error}")
            elif command == "ok":
                controller.dismiss_winner()
            elif command == "list":
                view = controller.search(arg)
                for participant in view.visible_participants:
                    print(f"{participant.id:>5}  {participant.name}")
                print(f"{len(view.participants)} participant(s) remaining")
            elif command == "history":
                for winner in controller.view.winners:
                    print(f"{winner.to_json()['drawn_at']}  {winner.name}")
            elif command == "clear-history":
                print(f"Removed {controller.clear_winners()} record(s)")
            else:
                print(__doc__)
            message = controller.view.message
            if message:
                print(message)
                controller.clear_message()
    finally:
        controller.close()
        scheduler.shutdown(timeout=1.0)
        engine.dispose()


if __name__ == "__main__":
    main()
