from __future__ import annotations

import sys
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from itertools import cycle
from pathlib import Path

import pytest

# Ensure the application package is importable when running tests directly via pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Wednesday, midday: no weekend or evening sentiment, inside business hours.
WEDNESDAY_NOON = datetime(2024, 6, 12, 12, 0, tzinfo=UTC)


class FixedClock:
    def __init__(self, now: datetime = WEDNESDAY_NOON) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class ScriptedRandom:
    """Replays the given values forever."""

    def __init__(self, values: Sequence[float]) -> None:
        self._values = cycle(values)

    def random(self) -> float:
        return next(self._values)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def make_clock() -> Callable[[datetime], FixedClock]:
    return FixedClock


@pytest.fixture
def neutral_rng() -> ScriptedRandom:
    # 0.5 cancels the uniform noise term exactly.
    return ScriptedRandom([0.5])


@pytest.fixture
def make_rng() -> Callable[[Sequence[float]], ScriptedRandom]:
    return ScriptedRandom
