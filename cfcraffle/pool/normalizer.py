"""Helpers for splitting pasted text into candidate participant names."""

from __future__ import annotations

import re

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def normalize_names(raw_text: str) -> list[str]:
    """Split ``raw_text`` into trimmed, non-empty candidate names.

    Parameters
    ----------
    raw_text : str
        Text as typed or pasted by the user, one name per line.

    Returns
    -------
    list[str]
        Candidate names in input order. Duplicates and casing variants are
        left untouched; see :func:`cfcraffle.pool.resolve_duplicates`.
    """

    if raw_text is None:
        raise ValueError("raw_text must not be None")
    if not isinstance(raw_text, str):
        raise TypeError("raw_text must be a string")
    return [line.strip() for line in _LINE_BREAK.split(raw_text) if line.strip()]


__all__ = ["normalize_names"]
