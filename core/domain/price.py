from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator

BASE_PRICE = 50.0
MIN_PRICE = 5.0
MAX_PRICE = 500.0
VOLATILITY_FACTOR = 0.1
NOTIONAL_SHARES_OUTSTANDING = 1000


def clamp_price(value: float) -> float:
    return max(MIN_PRICE, min(MAX_PRICE, value))


class PriceFactors(BaseModel):
    """Normalised pricing inputs derived from movie metadata (never persisted)."""

    popularity: float
    rating: float
    recency: float
    budget: float
    revenue: float
    vote_count: float
    genre_multiplier: float
    seasonal_multiplier: float
    trend_multiplier: float

    model_config = ConfigDict(frozen=True)


class MoviePrice(BaseModel):
    """Price snapshot for one movie stock."""

    movie_id: int
    base_price: float
    current_price: float
    price_change: float = 0.0
    price_change_percent: float = 0.0
    volume: int
    market_cap: float
    volatility: float
    last_updated: datetime

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_bounds(self) -> MoviePrice:
        if not MIN_PRICE <= self.current_price <= MAX_PRICE:
            raise ValueError(
                f"current_price {self.current_price} outside [{MIN_PRICE}, {MAX_PRICE}]"
            )
        return self


__all__ = [
    "BASE_PRICE",
    "MAX_PRICE",
    "MIN_PRICE",
    "MoviePrice",
    "NOTIONAL_SHARES_OUTSTANDING",
    "PriceFactors",
    "VOLATILITY_FACTOR",
    "clamp_price",
]
