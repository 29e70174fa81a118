from __future__ import annotations

import logging
import math

from core.domain.errors import PersistenceError
from core.domain.portfolio import (
    Holding,
    Portfolio,
    TradeError,
    TradeResult,
    Transaction,
    TransactionType,
)
from core.ledger.store import PortfolioStore
from core.ports.runtime import Clock, TransactionIdGenerator

logger = logging.getLogger(__name__)


def _validate_order(shares: int, price: float) -> TradeResult | None:
    if isinstance(shares, bool) or not isinstance(shares, int) or shares <= 0:
        return TradeResult.fail(TradeError.INVALID_ORDER, f"Share count must be a positive whole number, got {shares}.")
    if not math.isfinite(price) or price <= 0:
        return TradeResult.fail(TradeError.INVALID_ORDER, f"Price must be a positive finite amount, got {price}.")
    if not math.isfinite(shares * price):
        return TradeResult.fail(TradeError.INVALID_ORDER, f"Order value for {shares} shares at {price} is out of range.")
    return None


class TradeProcessor:
    """Applies buy and sell orders to the stored portfolio as single ledger mutations."""

    def __init__(self, store: PortfolioStore, *, clock: Clock, ids: TransactionIdGenerator) -> None:
        self._store = store
        self._clock = clock
        self._ids = ids

    async def buy(self, movie_id: int, title: str, poster_path: str, shares: int, price: float) -> TradeResult:
        invalid = _validate_order(shares, price)
        if invalid:
            return invalid

        async with self._store.mutation():
            portfolio = await self._store.load()
            cost = shares * price
            if portfolio.cash < cost:
                return TradeResult.fail(
                    TradeError.INSUFFICIENT_FUNDS,
                    f"Insufficient funds. You need ${cost:,.2f} but only have ${portfolio.cash:,.2f} "
                    f"(short by ${cost - portfolio.cash:,.2f}).",
                )

            holdings = dict(portfolio.holdings)
            existing = holdings.get(movie_id)
            if existing:
                total_shares = existing.shares + shares
                average = (existing.cost_basis + cost) / total_shares
                holdings[movie_id] = existing.revalue(price, shares=total_shares, average_price=average)
            else:
                holdings[movie_id] = Holding.open(movie_id, title, poster_path, shares, price)

            transaction = self._transaction(movie_id, title, TransactionType.BUY, shares, price)
            updated = portfolio.model_copy(
                update={
                    "cash": portfolio.cash - cost,
                    "holdings": holdings,
                    "transactions": [*portfolio.transactions, transaction],
                }
            )
            return await self._commit(
                updated, transaction, f"Successfully bought {shares} shares of {title} for ${cost:,.2f}"
            )

    async def sell(self, movie_id: int, shares: int, price: float) -> TradeResult:
        invalid = _validate_order(shares, price)
        if invalid:
            return invalid

        async with self._store.mutation():
            portfolio = await self._store.load()
            holding = portfolio.holdings.get(movie_id)
            if holding is None:
                return TradeResult.fail(TradeError.NO_SUCH_HOLDING, f"You don't own any shares of movie {movie_id}.")
            if holding.shares < shares:
                return TradeResult.fail(
                    TradeError.INSUFFICIENT_SHARES,
                    f"You only own {holding.shares} shares. Cannot sell {shares} shares.",
                )

            revenue = shares * price
            remaining = holding.shares - shares
            holdings = dict(portfolio.holdings)
            if remaining == 0:
                del holdings[movie_id]
            else:
                holdings[movie_id] = holding.revalue(price, shares=remaining)

            transaction = self._transaction(movie_id, holding.movie_title, TransactionType.SELL, shares, price)
            updated = portfolio.model_copy(
                update={
                    "cash": portfolio.cash + revenue,
                    "holdings": holdings,
                    "transactions": [*portfolio.transactions, transaction],
                }
            )
            return await self._commit(updated, transaction, f"Successfully sold {shares} shares for ${revenue:,.2f}")

    def _transaction(
        self, movie_id: int, title: str, kind: TransactionType, shares: int, price: float
    ) -> Transaction:
        return Transaction(
            id=self._ids.next_id(),
            movie_id=movie_id,
            movie_title=title,
            type=kind,
            shares=shares,
            price=price,
            total_amount=shares * price,
            timestamp=self._clock.now(),
        )

    async def _commit(self, portfolio: Portfolio, transaction: Transaction, message: str) -> TradeResult:
        portfolio = self._store.recalculate(portfolio)
        try:
            await self._store.save(portfolio)
        except PersistenceError:
            logger.exception("Failed to persist %s transaction %s", transaction.type.value, transaction.id)
            return TradeResult.fail(
                TradeError.PERSISTENCE_FAILURE, f"Failed to {transaction.type.value} stock. Please try again."
            )
        logger.info(
            "Executed %s %s x%d @ %.2f (tx=%s)",
            transaction.type.value,
            transaction.movie_id,
            transaction.shares,
            transaction.price,
            transaction.id,
        )
        return TradeResult.ok(message, portfolio)


__all__ = ["TradeProcessor"]
