from __future__ import annotations

import unittest
from collections import Counter
from contextlib import contextmanager
from typing import Iterator
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cfcraffle.draw import (
    DrawEngine,
    DrawState,
    SeededRandomSource,
    SystemRandomSource,
    select_winner,
)
from cfcraffle.exceptions import (
    DrawInProgressError,
    DrawVoidedError,
    EmptyPoolError,
    StorageFailureError,
)
from cfcraffle.models import Base
from cfcraffle.repository import SQLAlchemyRaffleRepository
from cfcraffle.store import ParticipantStore


class FixedRandomSource:
    def __init__(self, index: int) -> None:
        self.index = index
        self.calls: list[int] = []

    def randbelow(self, n: int) -> int:
        self.calls.append(n)
        return self.index


class NonTransactionalRepository:
    """Wraps a repository so every call commits on its own."""

    transactional = False

    def __init__(self, inner: SQLAlchemyRaffleRepository) -> None:
        self._inner = inner
        self.failing_deletes = 0
        self.failing_inserts = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield None

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def insert_winner(self, name, **kwargs):
        if self.failing_inserts:
            self.failing_inserts -= 1
            raise StorageFailureError("ledger unavailable")
        return self._inner.insert_winner(name, **kwargs)

    def delete_participant(self, participant_id):
        if self.failing_deletes:
            self.failing_deletes -= 1
            raise StorageFailureError("delete failed")
        return self._inner.delete_participant(participant_id)


class SelectWinnerTests(unittest.TestCase):
    def test_empty_pool_raises(self) -> None:
        with self.assertRaises(EmptyPoolError):
            select_winner([], FixedRandomSource(0))

    def test_returns_index_from_source(self) -> None:
        source = FixedRandomSource(2)
        self.assertEqual(select_winner(["a", "b", "c"], source), 2)
        self.assertEqual(source.calls, [3])

    def test_out_of_range_source_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            select_winner(["a", "b"], FixedRandomSource(2))

    def test_seeded_source_is_reproducible(self) -> None:
        pool = list(range(10))
        first = [select_winner(pool, src) for src in [SeededRandomSource(5)] for _ in range(20)]
        second = [select_winner(pool, src) for src in [SeededRandomSource(5)] for _ in range(20)]
        self.assertEqual(first, second)

    def test_selection_is_uniform(self) -> None:
        pool = ["a", "b", "c", "d", "e"]
        trials = 25000
        for source in (SeededRandomSource(2026), SystemRandomSource()):
            counts = Counter(select_winner(pool, source) for _ in range(trials))
            self.assertEqual(set(counts), set(range(len(pool))))
            for index in range(len(pool)):
                # Expected 5000 each; standard deviation is about 63.
                self.assertAlmostEqual(counts[index] / trials, 1 / len(pool), delta=0.015)


class DrawEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.repository = SQLAlchemyRaffleRepository(self.Session)

    def tearDown(self) -> None:
        self.engine.dispose()

    def _seed(self, *names: str):
        return self.repository.insert_participants(list(names))


class DrawEngineTests(DrawEngineTestCase):
    def test_draw_moves_exactly_one_participant_into_ledger(self) -> None:
        self._seed("Alice", "Bob", "Carol", "Dana")
        pool_before = self.repository.list_participants()
        engine = DrawEngine(self.repository, random_source=FixedRandomSource(1))

        outcome = engine.draw()

        self.assertEqual(outcome.name, pool_before[1].name)
        self.assertEqual(outcome.participant_id, pool_before[1].id)
        remaining = self.repository.list_participants()
        self.assertEqual(len(remaining), 3)
        self.assertNotIn(outcome.participant_id, [p.id for p in remaining])
        winners = self.repository.list_winners()
        self.assertEqual(len(winners), 1)
        self.assertEqual(winners[0].name, outcome.name)
        self.assertEqual(winners[0].id, outcome.winner_id)
        self.assertEqual(winners[0].participant_ref, outcome.participant_id)
        self.assertIs(engine.state, DrawState.SETTLED)

    def test_state_machine(self) -> None:
        self._seed("Alice", "Bob")
        engine = DrawEngine(self.repository, random_source=SeededRandomSource(1))
        self.assertIs(engine.state, DrawState.IDLE)
        with self.assertRaises(DrawInProgressError):
            engine.commit()

        ticket = engine.begin()
        self.assertIs(engine.state, DrawState.DRAWING)
        self.assertEqual(len(ticket.snapshot), 2)
        self.assertEqual(ticket.snapshot[ticket.index], ticket.name)
        with self.assertRaises(DrawInProgressError):
            engine.begin()
        with self.assertRaises(DrawInProgressError):
            engine.acknowledge()

        outcome = engine.commit()
        self.assertEqual(outcome.name, ticket.name)
        self.assertIs(engine.state, DrawState.SETTLED)
        self.assertEqual(engine.outcome, outcome)
        with self.assertRaises(DrawInProgressError):
            engine.begin()

        engine.acknowledge()
        self.assertIs(engine.state, DrawState.IDLE)
        self.assertIsNone(engine.ticket)

    def test_selection_is_fixed_when_draw_begins(self) -> None:
        self._seed("Alice", "Bob", "Carol")
        source = FixedRandomSource(2)
        engine = DrawEngine(self.repository, random_source=source)
        ticket = engine.begin()
        # Adding names mid-draw must not change the committed winner.
        self._seed("Zed")
        outcome = engine.commit()
        self.assertEqual(outcome.name, ticket.name)
        self.assertEqual(source.calls, [3])

    def test_empty_pool_leaves_ledger_unchanged(self) -> None:
        self.repository.insert_winner("Earlier")
        engine = DrawEngine(self.repository)
        with self.assertRaises(EmptyPoolError):
            engine.draw()
        self.assertIs(engine.state, DrawState.IDLE)
        self.assertEqual([w.name for w in self.repository.list_winners()], ["Earlier"])

    def test_drawing_everyone_empties_pool(self) -> None:
        names = ["Alice", "Bob", "Carol", "Dana", "Eve"]
        self._seed(*names)
        engine = DrawEngine(self.repository, random_source=SeededRandomSource(99))
        drawn = []
        for expected_size in range(len(names), 0, -1):
            self.assertEqual(len(self.repository.list_participants()), expected_size)
            drawn.append(engine.draw().name)
            engine.acknowledge()
        self.assertCountEqual(drawn, names)
        self.assertEqual(self.repository.list_participants(), [])
        self.assertCountEqual([w.name for w in self.repository.list_winners()], names)

    def test_engine_frequencies_are_uniform(self) -> None:
        engine = DrawEngine(self.repository, random_source=SeededRandomSource(7))
        trials = 1200
        counts: Counter[str] = Counter()
        for _ in range(trials):
            self._seed("Alice", "Bob", "Carol")
            counts[engine.draw().name] += 1
            engine.acknowledge()
            self.repository.delete_all_participants()
        for name in ("Alice", "Bob", "Carol"):
            # Expected 400 each; standard deviation is about 16.
            self.assertAlmostEqual(counts[name] / trials, 1 / 3, delta=0.06)

    def test_abort_before_commit(self) -> None:
        self._seed("Alice")
        engine = DrawEngine(self.repository)
        engine.begin()
        engine.abort()
        self.assertIs(engine.state, DrawState.IDLE)
        self.assertEqual(len(self.repository.list_participants()), 1)
        self.assertEqual(self.repository.list_winners(), [])


class DrawEngineFailureTests(DrawEngineTestCase):
    def test_transactional_failure_rolls_back_ledger_entry(self) -> None:
        self._seed("Alice", "Bob")
        engine = DrawEngine(self.repository, random_source=FixedRandomSource(0))
        engine.begin()

        with patch.object(
            self.repository,
            "delete_participant",
            side_effect=StorageFailureError("delete failed"),
        ):
            with self.assertRaises(StorageFailureError):
                engine.commit()

        self.assertIs(engine.state, DrawState.DRAWING)
        self.assertFalse(engine.has_partial_commit)
        self.assertEqual(self.repository.list_winners(), [])
        self.assertEqual(len(self.repository.list_participants()), 2)

        outcome = engine.commit()
        self.assertEqual([w.name for w in self.repository.list_winners()], [outcome.name])
        self.assertEqual(len(self.repository.list_participants()), 1)

    def test_non_transactional_retry_resumes_after_ledger_write(self) -> None:
        self._seed("Alice", "Bob")
        repository = NonTransactionalRepository(self.repository)
        repository.failing_deletes = 1
        engine = DrawEngine(repository, random_source=FixedRandomSource(0))
        ticket = engine.begin()

        with self.assertRaises(StorageFailureError):
            engine.commit()

        # Ledger first: the entry exists, the participant has not been removed.
        self.assertTrue(engine.has_partial_commit)
        self.assertEqual([w.name for w in self.repository.list_winners()], [ticket.name])
        self.assertEqual(len(self.repository.list_participants()), 2)
        with self.assertRaises(DrawInProgressError):
            engine.abort()

        outcome = engine.commit()
        self.assertEqual(outcome.name, ticket.name)
        self.assertEqual(len(self.repository.list_winners()), 1)
        self.assertEqual(
            [p.name for p in self.repository.list_participants()],
            [n for n in ticket.snapshot if n != ticket.name],
        )

    def test_non_transactional_ledger_failure_removes_nothing(self) -> None:
        self._seed("Alice")
        repository = NonTransactionalRepository(self.repository)
        repository.failing_inserts = 1
        engine = DrawEngine(repository)
        engine.begin()
        with self.assertRaises(StorageFailureError):
            engine.commit()
        self.assertFalse(engine.has_partial_commit)
        self.assertEqual(len(self.repository.list_participants()), 1)
        self.assertEqual(self.repository.list_winners(), [])
        engine.abort()
        self.assertIs(engine.state, DrawState.IDLE)

    def test_participant_removed_after_begin_voids_the_draw(self) -> None:
        self._seed("Alice", "Bob")
        engine = DrawEngine(self.repository, random_source=FixedRandomSource(0))
        ticket = engine.begin()
        ParticipantStore(self.repository).remove(ticket.participant_id)

        with self.assertLogs("cfcraffle.draw.engine", level="WARNING"):
            with self.assertRaises(DrawVoidedError) as ctx:
                engine.commit()

        self.assertEqual(ctx.exception.participant_id, ticket.participant_id)
        self.assertEqual(self.repository.list_winners(), [])
        self.assertEqual(len(self.repository.list_participants()), 1)
        self.assertIs(engine.state, DrawState.IDLE)
        self.assertIsNone(engine.ticket)

        outcome = engine.draw()
        self.assertNotEqual(outcome.name, ticket.name)
        self.assertEqual([w.name for w in self.repository.list_winners()], [outcome.name])
        self.assertEqual(self.repository.list_participants(), [])

    def test_missing_row_at_delete_rolls_back_ledger_entry(self) -> None:
        self._seed("Alice", "Bob")
        engine = DrawEngine(self.repository, random_source=FixedRandomSource(0))
        engine.begin()

        # The row vanishes between the ledger write and the delete.
        with patch.object(self.repository, "delete_participant", return_value=False):
            with self.assertRaises(DrawVoidedError):
                engine.commit()

        self.assertEqual(self.repository.list_winners(), [])
        self.assertEqual(len(self.repository.list_participants()), 2)
        self.assertIs(engine.state, DrawState.IDLE)

    def test_retry_after_rollback_does_not_trust_missing_row(self) -> None:
        self._seed("Alice", "Bob")
        engine = DrawEngine(self.repository, random_source=FixedRandomSource(0))
        ticket = engine.begin()
        with patch.object(
            self.repository,
            "delete_participant",
            side_effect=StorageFailureError("delete failed"),
        ):
            with self.assertRaises(StorageFailureError):
                engine.commit()

        self.repository.delete_participant(ticket.participant_id)
        with self.assertRaises(DrawVoidedError):
            engine.commit()
        self.assertEqual(self.repository.list_winners(), [])
        self.assertIs(engine.state, DrawState.IDLE)

    def test_non_transactional_draw_of_removed_participant_writes_nothing(self) -> None:
        self._seed("Alice", "Bob")
        repository = NonTransactionalRepository(self.repository)
        engine = DrawEngine(repository, random_source=FixedRandomSource(0))
        ticket = engine.begin()
        self.repository.delete_participant(ticket.participant_id)

        with self.assertRaises(DrawVoidedError):
            engine.commit()
        self.assertEqual(self.repository.list_winners(), [])
        self.assertIs(engine.state, DrawState.IDLE)

    def test_non_transactional_resume_accepts_earlier_removal(self) -> None:
        self._seed("Alice", "Bob")
        repository = NonTransactionalRepository(self.repository)
        engine = DrawEngine(repository, random_source=FixedRandomSource(0))
        ticket = engine.begin()

        inner_delete = self.repository.delete_participant

        def delete_then_fail(participant_id):
            inner_delete(participant_id)
            raise StorageFailureError("connection lost after delete")

        with patch.object(self.repository, "delete_participant", side_effect=delete_then_fail):
            with self.assertRaises(StorageFailureError):
                engine.commit()

        outcome = engine.commit()
        self.assertEqual(outcome.name, ticket.name)
        self.assertEqual(len(self.repository.list_winners()), 1)
        self.assertEqual(len(self.repository.list_participants()), 1)

    def test_reconcile_removes_participants_already_in_ledger(self) -> None:
        alice, bob = self._seed("Alice", "Bob")
        # Simulates a crash after the ledger write and before the removal.
        self.repository.insert_winner("Alice", participant_ref=alice.id)
        engine = DrawEngine(self.repository)

        with self.assertLogs("cfcraffle.draw.engine", level="WARNING"):
            self.assertEqual(engine.reconcile(), 1)
        self.assertEqual([p.id for p in self.repository.list_participants()], [bob.id])
        self.assertEqual(engine.reconcile(), 0)

    def test_reconcile_refused_mid_draw(self) -> None:
        self._seed("Alice")
        engine = DrawEngine(self.repository)
        engine.begin()
        with self.assertRaises(DrawInProgressError):
            engine.reconcile()


if __name__ == "__main__":
    unittest.main()
