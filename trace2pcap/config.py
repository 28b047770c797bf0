"""Tunables for the synthetic TCP conversation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_INITIAL_SEQ = 5
DEFAULT_WINDOW = 65535
DEFAULT_WINDOW_SCALE = 7
DEFAULT_TTL = 64
DEFAULT_TICK_SECONDS = 0.1


@dataclass(frozen=True)
class SynthesisConfig:
    """Fixed header values and clock settings for a conversion run."""

    initial_seq: int = DEFAULT_INITIAL_SEQ
    window: int = DEFAULT_WINDOW
    window_scale: int = DEFAULT_WINDOW_SCALE
    ttl: int = DEFAULT_TTL
    tick_seconds: float = DEFAULT_TICK_SECONDS
    # None means "seed from the process start time".
    start_time: Optional[float] = None


__all__ = ["SynthesisConfig"]
