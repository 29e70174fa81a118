from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of wall-clock time."""

    def now(self) -> datetime:
        """Return the current (timezone-aware) time."""


class RandomSource(Protocol):
    """Uniform random numbers in [0, 1); ``random.Random`` satisfies it."""

    def random(self) -> float:
        """Return the next random float."""


class TransactionIdGenerator(Protocol):
    """Issues unique transaction identifiers."""

    def next_id(self) -> str:
        """Return an identifier never returned before."""
