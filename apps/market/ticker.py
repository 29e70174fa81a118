from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from core.domain.price import MoviePrice
from core.ledger.store import PortfolioStore
from core.market.pricing import PriceEngine
from core.market.simulator import PriceSimulator

logger = logging.getLogger(__name__)


class PriceBoard:
    """Live prices tracked by one ticker; owned and passed around by the caller."""

    def __init__(self) -> None:
        self._prices: dict[int, MoviePrice] = {}

    def __contains__(self, movie_id: int) -> bool:
        return movie_id in self._prices

    def __len__(self) -> int:
        return len(self._prices)

    def get(self, movie_id: int) -> MoviePrice | None:
        return self._prices.get(movie_id)

    def put(self, price: MoviePrice) -> None:
        self._prices[price.movie_id] = price

    def snapshot(self) -> list[MoviePrice]:
        return list(self._prices.values())


@dataclass(frozen=True)
class TickerContext:
    engine: PriceEngine
    simulator: PriceSimulator
    store: PortfolioStore
    interval_seconds: int
    refresh_every_ticks: int


async def track(board: PriceBoard, engine: PriceEngine, movie_ids: Iterable[int]) -> None:
    """Seed the board with fresh quotes for movies it does not track yet."""
    missing = [movie_id for movie_id in movie_ids if movie_id not in board]
    for price in await engine.quote_many(missing):
        board.put(price)


async def quote_from_board(board: PriceBoard, engine: PriceEngine, movie_id: int) -> MoviePrice:
    price = board.get(movie_id)
    if price is None:
        price = await engine.quote(movie_id)
        board.put(price)
    return price


def tick(board: PriceBoard, simulator: PriceSimulator) -> None:
    for price in board.snapshot():
        board.put(simulator.advance(price))


async def price_ticker_loop(context: TickerContext, board: PriceBoard, *, max_ticks: int | None = None) -> None:
    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        try:
            await asyncio.sleep(context.interval_seconds)
            tick(board, context.simulator)
            ticks += 1
            logger.info("Tick %d advanced %d prices", ticks, len(board))

            if ticks % context.refresh_every_ticks == 0:
                portfolio = await context.store.load()
                await track(board, context.engine, portfolio.holdings)
                refreshed = await context.store.refresh_prices(
                    portfolio, lambda movie_id: quote_from_board(board, context.engine, movie_id)
                )
                logger.info(
                    "Portfolio refreshed value=%.2f pl=%.2f", refreshed.total_value, refreshed.total_profit_loss
                )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Price tick failed")
            await asyncio.sleep(1)


__all__ = ["PriceBoard", "TickerContext", "price_ticker_loop", "quote_from_board", "tick", "track"]
