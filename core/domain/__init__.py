"""Domain models."""

from core.domain.errors import CatalogError, MovieMarketError, MovieNotFoundError, PersistenceError
from core.domain.movie import MovieAttributes
from core.domain.portfolio import (
    INITIAL_CASH,
    Holding,
    Portfolio,
    PortfolioStats,
    TradeError,
    TradeResult,
    Transaction,
    TransactionType,
)
from core.domain.price import MoviePrice, PriceFactors

__all__ = [
    "CatalogError",
    "Holding",
    "INITIAL_CASH",
    "MovieAttributes",
    "MovieMarketError",
    "MovieNotFoundError",
    "MoviePrice",
    "PersistenceError",
    "Portfolio",
    "PortfolioStats",
    "PriceFactors",
    "TradeError",
    "TradeResult",
    "Transaction",
    "TransactionType",
]
