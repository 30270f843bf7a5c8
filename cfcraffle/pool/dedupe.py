"""Case-insensitive duplicate resolution for incoming names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ..exceptions import AllDuplicatesError


def name_key(name: str) -> str:
    """Return the comparison key used for case-insensitive name matching."""
    return name.casefold()


@dataclass(frozen=True)
class DuplicateResolution:
    """Outcome of merging candidates against the current pool.

    Attributes
    ----------
    to_insert : list[str]
        Unique new names, first-seen casing, in input order.
    skipped : int
        Number of candidates dropped, whether already in the pool or repeated
        within the batch.
    """

    to_insert: list[str]
    skipped: int


def resolve_duplicates(
    candidates: Sequence[str],
    existing_names: Iterable[str],
) -> DuplicateResolution:
    """Filter ``candidates`` against ``existing_names`` and against each other.

    Raises
    ------
    AllDuplicatesError
        If no candidate survives. ``skipped`` on the error equals
        ``len(candidates)``.
    """

    seen = {name_key(name) for name in existing_names}
    to_insert: list[str] = []
    for candidate in candidates:
        key = name_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        to_insert.append(candidate)

    skipped = len(candidates) - len(to_insert)
    if not to_insert:
        raise AllDuplicatesError(skipped=skipped)
    return DuplicateResolution(to_insert=to_insert, skipped=skipped)


__all__ = ["DuplicateResolution", "name_key", "resolve_duplicates"]
