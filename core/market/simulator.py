from __future__ import annotations

import logging
from datetime import datetime

from core.domain.price import MoviePrice, clamp_price
from core.ports.runtime import Clock, RandomSource

logger = logging.getLogger(__name__)


def market_activity(now: datetime) -> float:
    activity = 1.0
    if 9 <= now.hour <= 17:
        activity *= 1.2
    if now.weekday() >= 5:
        activity *= 1.1
    return activity


def advance(price: MoviePrice, *, clock: Clock, rng: RandomSource) -> MoviePrice:
    """Move ``price`` one random step; change fields are relative to the previous price."""
    now = clock.now()
    previous = price.current_price
    step = (rng.random() - 0.5) * price.volatility * market_activity(now) * previous
    new_price = clamp_price(previous + step)
    change = new_price - previous
    return price.model_copy(
        update={
            "current_price": new_price,
            "price_change": change,
            "price_change_percent": change / previous * 100 if previous else 0.0,
            "last_updated": now,
        }
    )


class PriceSimulator:
    def __init__(self, *, clock: Clock, rng: RandomSource) -> None:
        self._clock = clock
        self._rng = rng

    def advance(self, price: MoviePrice) -> MoviePrice:
        updated = advance(price, clock=self._clock, rng=self._rng)
        logger.debug(
            "Movie %s price %.2f -> %.2f", price.movie_id, price.current_price, updated.current_price
        )
        return updated


__all__ = ["PriceSimulator", "advance", "market_activity"]
