"""Name intake: turning raw text into names that may join the pool."""

from .dedupe import DuplicateResolution, resolve_duplicates
from .normalizer import normalize_names

__all__ = [
    "DuplicateResolution",
    "normalize_names",
    "resolve_duplicates",
]
