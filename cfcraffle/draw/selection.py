"""Uniform winner selection with an injectable random source."""

from __future__ import annotations

import random
import secrets
from typing import Optional, Protocol, Sequence

from ..exceptions import EmptyPoolError


class RandomSource(Protocol):
    def randbelow(self, n: int) -> int:
        """Return an integer drawn uniformly from ``[0, n)``."""
        ...


class SystemRandomSource:
    """Cryptographically strong source backed by :func:`secrets.randbelow`."""

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)


class SeededRandomSource:
    """Reproducible source for tests and replays.

    :meth:`random.Random.randrange` rejects out-of-range samples instead of
    reducing modulo ``n``, so results stay uniform for every ``n``.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)


def select_winner(pool: Sequence[object], random_source: Optional[RandomSource] = None) -> int:
    """Pick the index of the winning entry of ``pool``.

    Parameters
    ----------
    pool : Sequence[object]
        Snapshot of the active participants.
    random_source : Optional[RandomSource], default: None
        Source of uniform integers. Defaults to :class:`SystemRandomSource`.

    Returns
    -------
    int
        Index in ``[0, len(pool))``.

    Raises
    ------
    EmptyPoolError
        If ``pool`` is empty.
    """

    size = len(pool)
    if size == 0:
        raise EmptyPoolError()
    source = random_source or SystemRandomSource()
    index = source.randbelow(size)
    if not 0 <= index < size:
        raise ValueError(f"Random source returned {index}, outside [0, {size})")
    return index


__all__ = [
    "RandomSource",
    "SeededRandomSource",
    "SystemRandomSource",
    "select_winner",
]
