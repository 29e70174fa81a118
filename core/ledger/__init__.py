"""Portfolio ledger: persistence, trade execution and statistics."""

from core.ledger.stats import compute_stats
from core.ledger.store import PORTFOLIO_STORAGE_KEY, PortfolioStore
from core.ledger.trading import TradeProcessor

__all__ = ["PORTFOLIO_STORAGE_KEY", "PortfolioStore", "TradeProcessor", "compute_stats"]
