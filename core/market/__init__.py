"""Movie stock pricing and price movement."""

from core.market.pricing import PriceEngine, derive_price, fallback_price
from core.market.simulator import PriceSimulator, advance

__all__ = ["PriceEngine", "PriceSimulator", "advance", "derive_price", "fallback_price"]
