from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from pydantic import ValidationError

from core.domain.errors import PersistenceError
from core.domain.portfolio import INITIAL_CASH, Portfolio
from core.domain.price import MoviePrice
from core.ports.key_value_store import KeyValueStore
from core.ports.runtime import Clock

logger = logging.getLogger(__name__)

PORTFOLIO_STORAGE_KEY = "movie_portfolio"

QuoteFn = Callable[[int], Awaitable[MoviePrice]]


class PortfolioStore:
    """Owner of the persisted portfolio record.

    Every read-modify-write must run inside ``mutation()``; the lock is per
    store instance, so a deployment needs one instance per portfolio key.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock,
        key: str = PORTFOLIO_STORAGE_KEY,
        initial_cash: float = INITIAL_CASH,
    ) -> None:
        self._store = store
        self._clock = clock
        self._key = key
        self._initial_cash = initial_cash
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def mutation(self) -> AsyncIterator[None]:
        async with self._lock:
            yield

    async def initialize(self) -> Portfolio:
        portfolio = Portfolio.fresh(self._clock.now(), initial_cash=self._initial_cash)
        try:
            await self.save(portfolio)
        except PersistenceError:
            logger.exception("Failed to persist new portfolio under %s", self._key)
        else:
            logger.info("Initialized portfolio %s with cash %.2f", self._key, self._initial_cash)
        return portfolio

    async def _read(self) -> Portfolio | None:
        """The persisted portfolio, or None when it is absent or unreadable."""
        try:
            payload = await self._store.get(self._key)
        except PersistenceError:
            logger.exception("Failed to read portfolio %s", self._key)
            return None

        if not payload:
            return None
        try:
            return Portfolio.model_validate_json(payload)
        except ValidationError:
            logger.warning("Corrupt portfolio record under %s", self._key)
            return None

    async def load(self) -> Portfolio:
        portfolio = await self._read()
        if portfolio is None:
            return await self.initialize()
        return portfolio

    async def save(self, portfolio: Portfolio) -> None:
        await self._store.set(self._key, portfolio.model_dump_json())

    def recalculate(self, portfolio: Portfolio) -> Portfolio:
        return portfolio.recalculated(self._clock.now(), initial_cash=self._initial_cash)

    async def refresh_prices(self, portfolio: Portfolio, quote_fn: QuoteFn) -> Portfolio:
        """Revalue every holding at a fresh quote; failed quotes keep the stale price.

        The stored record is re-read under the lock so trades committed after
        the caller loaded ``portfolio`` survive. ``portfolio`` is only used when
        nothing readable is stored.
        """
        async with self.mutation():
            stored = await self._read()
            if stored is not None:
                portfolio = stored
            holdings = {}
            for movie_id, holding in portfolio.holdings.items():
                try:
                    quote = await quote_fn(movie_id)
                except Exception:
                    logger.exception("Quote failed for movie %s; keeping stale price", movie_id)
                    holdings[movie_id] = holding
                    continue
                holdings[movie_id] = holding.revalue(quote.current_price)

            refreshed = self.recalculate(portfolio.model_copy(update={"holdings": holdings}))
            try:
                await self.save(refreshed)
            except PersistenceError:
                logger.exception("Failed to persist refreshed portfolio %s", self._key)
            return refreshed

    async def reset(self) -> Portfolio:
        async with self.mutation():
            try:
                await self._store.remove(self._key)
            except PersistenceError:
                logger.exception("Failed to remove portfolio %s", self._key)
            logger.info("Reset portfolio %s", self._key)
            return await self.initialize()


__all__ = ["PORTFOLIO_STORAGE_KEY", "PortfolioStore", "QuoteFn"]
