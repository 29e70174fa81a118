"""Synthetic movie stock pricing.

The base price is a weighted score over normalised metadata factors scaled by
``BASE_PRICE``. It is a heuristic for a game economy, not a valuation or
market-clearing model. The current price adds a small bounded perturbation
driven by sentiment (rating, popularity, weekday, hour) and injected noise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, time

from core.domain.errors import CatalogError
from core.domain.movie import MovieAttributes
from core.domain.price import (
    BASE_PRICE,
    NOTIONAL_SHARES_OUTSTANDING,
    VOLATILITY_FACTOR,
    MoviePrice,
    PriceFactors,
    clamp_price,
)
from core.ports.movie_catalog import MovieCatalog
from core.ports.runtime import Clock, RandomSource

logger = logging.getLogger(__name__)

RECENCY_WINDOW_DAYS = 365
MARKET_VOLATILITY_BOUND = 0.05
FALLBACK_VOLUME = 1000
FALLBACK_VOLATILITY = 0.1

# TMDB genre ids.
GENRE_MULTIPLIERS: Mapping[int, float] = {
    28: 1.2,  # Action
    12: 1.1,  # Adventure
    16: 0.9,  # Animation
    35: 1.0,  # Comedy
    80: 0.8,  # Crime
    99: 0.7,  # Documentary
    18: 1.0,  # Drama
    10751: 0.9,  # Family
    14: 1.1,  # Fantasy
    36: 0.8,  # History
    27: 1.3,  # Horror
    10402: 0.9,  # Music
    9648: 1.1,  # Mystery
    10749: 1.0,  # Romance
    878: 1.2,  # Science Fiction
    10770: 0.8,  # TV Movie
    53: 1.1,  # Thriller
    10752: 0.9,  # War
    37: 0.8,  # Western
}

# One multiplier per calendar month, January first.
SEASONAL_PATTERNS: Mapping[int, Sequence[float]] = {
    27: (1.2, 1.1, 1.3, 1.4, 1.1, 1.0, 0.9, 0.8, 0.9, 1.1, 1.3, 1.2),
    10749: (1.1, 1.2, 1.0, 0.9, 0.8, 0.9, 1.0, 1.1, 1.0, 0.9, 0.8, 1.1),
    28: (1.0, 0.9, 1.0, 1.1, 1.2, 1.3, 1.2, 1.1, 1.0, 0.9, 0.8, 0.9),
    35: (1.0,) * 12,
}

BASE_PRICE_WEIGHTS: Mapping[str, float] = {
    "popularity": 0.20,
    "rating": 0.20,
    "budget": 0.15,
    "revenue": 0.15,
    "vote_count": 0.10,
    "genre_multiplier": 0.10,
    "seasonal_multiplier": 0.05,
    "trend_multiplier": 0.05,
}


def _days_since(release_date: date | None, now: datetime) -> float | None:
    if release_date is None:
        return None
    released_at = datetime.combine(release_date, time.min, tzinfo=now.tzinfo)
    return (now - released_at).total_seconds() / 86400


def recency_factor(release_date: date | None, now: datetime) -> float:
    days = _days_since(release_date, now)
    if days is None:
        return 0.1
    return max(0.1, min(1.0, 1 - days / RECENCY_WINDOW_DAYS))


def recency_bonus(release_date: date | None, now: datetime) -> float:
    days = _days_since(release_date, now)
    if days is None:
        return 0.0
    if days < 30:
        return 0.2
    if days < 90:
        return 0.1
    if days < 365:
        return 0.05
    return 0.0


def seasonal_multiplier(genre_id: int | None, month: int) -> float:
    pattern = SEASONAL_PATTERNS.get(genre_id)
    return pattern[month - 1] if pattern else 1.0


def calculate_price_factors(attrs: MovieAttributes, now: datetime) -> PriceFactors:
    popularity = min(1.0, attrs.popularity / 1000)
    rating = attrs.vote_average / 10
    trend = 0.8 + popularity * 0.2 + rating * 0.1 + recency_bonus(attrs.release_date, now)
    return PriceFactors(
        popularity=popularity,
        rating=rating,
        recency=recency_factor(attrs.release_date, now),
        budget=min(1.0, attrs.budget / 200_000_000),
        revenue=min(1.0, attrs.revenue / 1_000_000_000),
        vote_count=min(1.0, attrs.vote_count / 10_000),
        genre_multiplier=GENRE_MULTIPLIERS.get(attrs.primary_genre, 1.0),
        seasonal_multiplier=seasonal_multiplier(attrs.primary_genre, now.month),
        trend_multiplier=max(0.8, min(1.2, trend)),
    )


def calculate_base_price(factors: PriceFactors) -> float:
    score = sum(getattr(factors, name) * weight for name, weight in BASE_PRICE_WEIGHTS.items())
    return clamp_price(BASE_PRICE * score)


def calculate_volatility(factors: PriceFactors) -> float:
    return VOLATILITY_FACTOR + factors.popularity * 0.1 + (1 - factors.rating) * 0.05


def calculate_market_volatility(
    factors: PriceFactors, volatility: float, now: datetime, rng: RandomSource
) -> float:
    """Bounded relative offset of the current price from the base price."""
    sentiment = 0.0
    if factors.rating > 0.7:
        sentiment += 0.02
    if factors.popularity > 0.5:
        sentiment += 0.01
    if now.weekday() >= 5:
        sentiment += 0.01
    if 18 <= now.hour <= 23:
        sentiment += 0.005

    noise = (rng.random() - 0.5) * volatility
    return max(-MARKET_VOLATILITY_BOUND, min(MARKET_VOLATILITY_BOUND, sentiment + noise))


def calculate_volume(factors: PriceFactors) -> int:
    return round(1000 + factors.popularity * 5000 + factors.rating * 2000)


def derive_price(attrs: MovieAttributes, *, clock: Clock, rng: RandomSource) -> MoviePrice:
    now = clock.now()
    factors = calculate_price_factors(attrs, now)
    base_price = calculate_base_price(factors)
    volatility = calculate_volatility(factors)
    current_price = clamp_price(base_price * (1 + calculate_market_volatility(factors, volatility, now, rng)))
    price_change = current_price - base_price
    volume = calculate_volume(factors)
    return MoviePrice(
        movie_id=attrs.movie_id,
        base_price=base_price,
        current_price=current_price,
        price_change=price_change,
        price_change_percent=price_change / base_price * 100,
        volume=volume,
        market_cap=current_price * volume * NOTIONAL_SHARES_OUTSTANDING,
        volatility=volatility,
        last_updated=now,
    )


def fallback_price(movie_id: int, now: datetime) -> MoviePrice:
    return MoviePrice(
        movie_id=movie_id,
        base_price=BASE_PRICE,
        current_price=BASE_PRICE,
        volume=FALLBACK_VOLUME,
        market_cap=BASE_PRICE * FALLBACK_VOLUME * NOTIONAL_SHARES_OUTSTANDING,
        volatility=FALLBACK_VOLATILITY,
        last_updated=now,
    )


class PriceEngine:
    """Quotes movie stocks from catalog metadata, degrading to a flat fallback price."""

    def __init__(self, catalog: MovieCatalog, *, clock: Clock, rng: RandomSource) -> None:
        self._catalog = catalog
        self._clock = clock
        self._rng = rng

    def derive(self, attrs: MovieAttributes) -> MoviePrice:
        return derive_price(attrs, clock=self._clock, rng=self._rng)

    async def quote(self, movie_id: int) -> MoviePrice:
        try:
            attrs = await self._catalog.get_movie_attributes(movie_id)
        except CatalogError as exc:
            logger.warning("Using fallback price for movie %s: %s", movie_id, exc)
            return fallback_price(movie_id, self._clock.now())
        except Exception:
            logger.exception("Unusable metadata for movie %s; using fallback price", movie_id)
            return fallback_price(movie_id, self._clock.now())
        return self.derive(attrs)

    async def quote_many(self, movie_ids: Iterable[int]) -> list[MoviePrice]:
        return list(await asyncio.gather(*(self.quote(movie_id) for movie_id in movie_ids)))

    async def trending(self, movie_ids: Iterable[int], *, limit: int = 10) -> list[MoviePrice]:
        """Movies with the largest relative move away from their base price."""
        prices = await self.quote_many(movie_ids)
        return sorted(prices, key=lambda price: price.price_change_percent, reverse=True)[:limit]

    async def top_performers(self, movie_ids: Iterable[int], *, limit: int = 10) -> list[MoviePrice]:
        prices = await self.quote_many(movie_ids)
        return sorted(prices, key=lambda price: price.current_price, reverse=True)[:limit]


__all__ = [
    "GENRE_MULTIPLIERS",
    "PriceEngine",
    "SEASONAL_PATTERNS",
    "calculate_base_price",
    "calculate_market_volatility",
    "calculate_price_factors",
    "calculate_volatility",
    "calculate_volume",
    "derive_price",
    "fallback_price",
    "recency_bonus",
    "recency_factor",
]
