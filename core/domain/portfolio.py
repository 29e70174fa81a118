from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

INITIAL_CASH = 100_000.0


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeError(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_SHARES = "insufficient_shares"
    NO_SUCH_HOLDING = "no_such_holding"
    INVALID_ORDER = "invalid_order"
    PERSISTENCE_FAILURE = "persistence_failure"


class Holding(BaseModel):
    """Shares of one movie owned by the portfolio, valued at the latest known price."""

    movie_id: int
    movie_title: str = ""
    poster_path: str = ""
    shares: int = Field(gt=0)
    average_price: float
    current_price: float
    total_value: float = 0.0
    profit_loss: float = 0.0
    profit_loss_percent: float = 0.0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def open(cls, movie_id: int, movie_title: str, poster_path: str, shares: int, price: float) -> Holding:
        return cls(
            movie_id=movie_id,
            movie_title=movie_title,
            poster_path=poster_path,
            shares=shares,
            average_price=price,
            current_price=price,
        ).revalue(price)

    @property
    def cost_basis(self) -> float:
        return self.average_price * self.shares

    def revalue(self, price: float, *, shares: int | None = None, average_price: float | None = None) -> Holding:
        """Return a copy priced at ``price`` with value and P/L recomputed."""
        shares = self.shares if shares is None else shares
        average = self.average_price if average_price is None else average_price
        profit_loss = (price - average) * shares
        percent = (price - average) / average * 100 if average > 0 else 0.0
        return self.model_copy(
            update={
                "shares": shares,
                "average_price": average,
                "current_price": price,
                "total_value": shares * price,
                "profit_loss": profit_loss,
                "profit_loss_percent": percent,
            }
        )


class Transaction(BaseModel):
    """Immutable ledger entry for a single executed trade."""

    id: str
    movie_id: int
    movie_title: str = ""
    type: TransactionType
    shares: int = Field(gt=0)
    price: float
    total_amount: float
    timestamp: datetime

    model_config = ConfigDict(frozen=True)


class Portfolio(BaseModel):
    """Cash, holdings and trade history for one profile."""

    cash: float
    total_value: float
    total_invested: float = 0.0
    total_profit_loss: float = 0.0
    total_profit_loss_percent: float = 0.0
    holdings: dict[int, Holding] = Field(default_factory=dict)
    transactions: list[Transaction] = Field(default_factory=list)
    created_at: datetime
    last_updated: datetime

    model_config = ConfigDict(frozen=True)

    @classmethod
    def fresh(cls, now: datetime, *, initial_cash: float = INITIAL_CASH) -> Portfolio:
        return cls(cash=initial_cash, total_value=initial_cash, created_at=now, last_updated=now)

    def recalculated(self, now: datetime, *, initial_cash: float = INITIAL_CASH) -> Portfolio:
        """Return a copy whose aggregate fields agree with cash and holdings."""
        holdings_value = sum(holding.total_value for holding in self.holdings.values())
        total_value = self.cash + holdings_value
        total_profit_loss = total_value - initial_cash
        return self.model_copy(
            update={
                "total_value": total_value,
                "total_invested": sum(holding.cost_basis for holding in self.holdings.values()),
                "total_profit_loss": total_profit_loss,
                "total_profit_loss_percent": total_profit_loss / initial_cash * 100 if initial_cash else 0.0,
                "last_updated": now,
            }
        )


class PortfolioStats(BaseModel):
    best_performer: Holding | None = None
    worst_performer: Holding | None = None
    total_transactions: int = 0
    win_rate: float = 0.0
    average_return: float = 0.0
    risk_score: float = 0.0


class TradeResult(BaseModel):
    """Outcome of a buy or sell request; failures carry no portfolio."""

    success: bool
    message: str
    portfolio: Portfolio | None = None
    error: TradeError | None = None

    @classmethod
    def ok(cls, message: str, portfolio: Portfolio) -> TradeResult:
        return cls(success=True, message=message, portfolio=portfolio)

    @classmethod
    def fail(cls, error: TradeError, message: str) -> TradeResult:
        return cls(success=False, message=message, error=error)


__all__ = [
    "Holding",
    "INITIAL_CASH",
    "Portfolio",
    "PortfolioStats",
    "TradeError",
    "TradeResult",
    "Transaction",
    "TransactionType",
]
