"""Runtime settings for the raffle core, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_DB_URL = "sqlite:///./dev.db"
DEFAULT_DRAW_DURATION = 3
MIN_DRAW_DURATION = 1
MAX_DRAW_DURATION = 30
DEFAULT_IDLE_INTERVAL_MS = 500
DEFAULT_DRAW_INTERVAL_MS = 60
DEFAULT_DB_TIMEOUT = 5.0


def clamp_draw_duration(value: object) -> int:
    """Coerce ``value`` into a whole number of seconds within ``[1, 30]``.

    Non-numeric input falls back to the minimum, matching the behaviour of the
    duration field in the raffle screen.
    """
    try:
        seconds = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return MIN_DRAW_DURATION
    return max(MIN_DRAW_DURATION, min(MAX_DRAW_DURATION, seconds))


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable '{name}' must be an integer") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable '{name}' must be a number") from exc


@dataclass(frozen=True)
class RaffleSettings:
    """Settings consumed by the engine factory and the controller.

    Attributes
    ----------
    database_url : str
        SQLAlchemy URL of the backing store.
    draw_duration : int
        Default length of the draw animation in seconds.
    idle_interval : float
        Seconds between idle name changes.
    draw_interval : float
        Seconds between name changes while drawing.
    db_timeout : float
        Seconds a sqlite connection waits on a locked database.
    """

    database_url: str = DEFAULT_DB_URL
    draw_duration: int = DEFAULT_DRAW_DURATION
    idle_interval: float = DEFAULT_IDLE_INTERVAL_MS / 1000
    draw_interval: float = DEFAULT_DRAW_INTERVAL_MS / 1000
    db_timeout: float = DEFAULT_DB_TIMEOUT

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "RaffleSettings":
        """Build settings from ``os.environ`` after loading ``.env``."""
        load_dotenv(env_file)
        idle_ms = _int_env("RAFFLE_IDLE_INTERVAL_MS", DEFAULT_IDLE_INTERVAL_MS)
        draw_ms = _int_env("RAFFLE_DRAW_INTERVAL_MS", DEFAULT_DRAW_INTERVAL_MS)
        if idle_ms <= 0 or draw_ms <= 0:
            raise ValueError("Animation intervals must be positive")
        return cls(
            database_url=os.getenv("DB_URL", DEFAULT_DB_URL),
            draw_duration=clamp_draw_duration(
                _int_env("RAFFLE_DRAW_DURATION", DEFAULT_DRAW_DURATION)
            ),
            idle_interval=idle_ms / 1000,
            draw_interval=draw_ms / 1000,
            db_timeout=_float_env("RAFFLE_DB_TIMEOUT", DEFAULT_DB_TIMEOUT),
        )


__all__ = [
    "DEFAULT_DRAW_DURATION",
    "MAX_DRAW_DURATION",
    "MIN_DRAW_DURATION",
    "ROOT_DIR",
    "RaffleSettings",
    "clamp_draw_duration",
]
