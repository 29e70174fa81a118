from __future__ import annotations

import math

from core.domain.portfolio import Portfolio, PortfolioStats


def compute_stats(portfolio: Portfolio) -> PortfolioStats:
    """Summarise holding performance.

    ``risk_score`` is the population standard deviation of per-holding
    percentage returns: a dispersion measure, not a financial risk metric.
    """
    holdings = list(portfolio.holdings.values())
    if not holdings:
        return PortfolioStats(total_transactions=len(portfolio.transactions))

    returns = [holding.profit_loss_percent for holding in holdings]
    mean = sum(returns) / len(returns)
    variance = sum((value - mean) ** 2 for value in returns) / len(returns)
    winners = sum(1 for holding in holdings if holding.profit_loss > 0)

    return PortfolioStats(
        best_performer=max(holdings, key=lambda holding: holding.profit_loss_percent),
        worst_performer=min(holdings, key=lambda holding: holding.profit_loss_percent),
        total_transactions=len(portfolio.transactions),
        win_rate=winners / len(holdings) * 100,
        average_return=mean,
        risk_score=math.sqrt(variance),
    )


__all__ = ["compute_stats"]
