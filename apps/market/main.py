"""Command line entrypoint for the movie market."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from adapters.catalog.tmdb import TmdbMovieCatalog
from adapters.runtime import SystemClock, UuidTransactionIds
from adapters.storage.memory_kv_store import InMemoryKeyValueStore
from adapters.storage.redis_kv_store import RedisKeyValueStore
from adapters.storage.sqlalchemy_kv_store import SqlAlchemyKeyValueStore
from apps.market.ticker import PriceBoard, TickerContext, price_ticker_loop, track
from core.domain.errors import CatalogError
from core.ledger.stats import compute_stats
from core.ledger.store import PortfolioStore
from core.ledger.trading import TradeProcessor
from core.market.pricing import PriceEngine
from core.market.simulator import PriceSimulator
from core.ports.key_value_store import KeyValueStore
from core.ports.movie_catalog import MovieCatalog
from core.settings import Settings

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def build_key_value_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "redis":
        return RedisKeyValueStore(settings.redis_url, namespace=settings.key_namespace)
    if settings.storage_backend == "sqlite":
        if settings.database_url.startswith("sqlite:///"):
            Path(settings.database_url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
        return SqlAlchemyKeyValueStore(settings.database_url)
    return InMemoryKeyValueStore()


@dataclass
class MarketServices:
    kv_store: KeyValueStore
    catalog: MovieCatalog
    engine: PriceEngine
    simulator: PriceSimulator
    store: PortfolioStore
    trades: TradeProcessor

    async def close(self) -> None:
        close = getattr(self.catalog, "close", None)
        if close is not None:
            await close()
        await self.kv_store.close()


def build_services(settings: Settings, *, catalog: MovieCatalog | None = None) -> MarketServices:
    clock = SystemClock()
    rng = random.Random()
    kv_store = build_key_value_store(settings)
    catalog = catalog or TmdbMovieCatalog(
        settings.tmdb_api_token,
        base_url=settings.tmdb_base_url,
        timeout_seconds=settings.tmdb_timeout_seconds,
    )
    store = PortfolioStore(
        kv_store, clock=clock, key=settings.portfolio_storage_key, initial_cash=settings.initial_cash
    )
    return MarketServices(
        kv_store=kv_store,
        catalog=catalog,
        engine=PriceEngine(catalog, clock=clock, rng=rng),
        simulator=PriceSimulator(clock=clock, rng=rng),
        store=store,
        trades=TradeProcessor(store, clock=clock, ids=UuidTransactionIds()),
    )


def _emit(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in payload]
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def run_command(args: argparse.Namespace, services: MarketServices) -> int:
    if args.command == "quote":
        _emit(await services.engine.quote_many(args.movie_ids))
        return 0

    if args.command in {"trending", "top"}:
        movie_ids = args.movie_ids
        if not movie_ids:
            try:
                movie_ids = [movie.movie_id for movie in await services.catalog.discover_popular(page=args.page)]
            except CatalogError:
                logger.exception("Could not list popular movies to rank")
                return 1
        rank = services.engine.trending if args.command == "trending" else services.engine.top_performers
        _emit(await rank(movie_ids, limit=args.limit))
        return 0

    if args.command == "buy":
        price = args.price
        title = args.title
        if price is None:
            price = (await services.engine.quote(args.movie_id)).current_price
        if title is None:
            try:
                title = (await services.catalog.get_movie_attributes(args.movie_id)).title
            except CatalogError as exc:
                logger.warning("Could not resolve title for movie %s: %s", args.movie_id, exc)
        result = await services.trades.buy(args.movie_id, title or f"Movie {args.movie_id}", "", args.shares, price)
        _emit(result)
        return 0 if result.success else 1

    if args.command == "sell":
        price = args.price
        if price is None:
            price = (await services.engine.quote(args.movie_id)).current_price
        result = await services.trades.sell(args.movie_id, args.shares, price)
        _emit(result)
        return 0 if result.success else 1

    if args.command == "portfolio":
        portfolio = await services.store.load()
        if args.refresh:
            portfolio = await services.store.refresh_prices(portfolio, services.engine.quote)
        _emit(portfolio)
        return 0

    if args.command == "stats":
        _emit(compute_stats(await services.store.load()))
        return 0

    if args.command == "reset":
        _emit(await services.store.reset())
        return 0

    if args.command == "ticker":
        settings: Settings = args.settings
        board = PriceBoard()
        portfolio = await services.store.load()
        await track(board, services.engine, [*args.movie_ids, *portfolio.holdings])
        context = TickerContext(
            engine=services.engine,
            simulator=services.simulator,
            store=services.store,
            interval_seconds=settings.ticker_interval_seconds,
            refresh_every_ticks=settings.refresh_every_ticks,
        )
        await price_ticker_loop(context, board, max_ticks=args.ticks)
        _emit(board.snapshot())
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="movie-market", description="Trade synthetic movie stocks.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Quote one or more movies")
    quote.add_argument("movie_ids", nargs="+", type=int)

    for name, help_text in (("trending", "Rank by price change"), ("top", "Rank by current price")):
        ranked = sub.add_parser(name, help=help_text)
        ranked.add_argument("movie_ids", nargs="*", type=int, help="Movies to rank (defaults to the popular list)")
        ranked.add_argument("--limit", type=int, default=10)
        ranked.add_argument("--page", type=int, default=1, help="Popular list page when no ids are given")

    buy = sub.add_parser("buy", help="Buy shares of a movie")
    buy.add_argument("movie_id", type=int)
    buy.add_argument("shares", type=int)
    buy.add_argument("--price", type=float, help="Execution price (defaults to a fresh quote)")
    buy.add_argument("--title")

    sell = sub.add_parser("sell", help="Sell shares of a movie")
    sell.add_argument("movie_id", type=int)
    sell.add_argument("shares", type=int)
    sell.add_argument("--price", type=float, help="Execution price (defaults to a fresh quote)")

    portfolio = sub.add_parser("portfolio", help="Show the portfolio")
    portfolio.add_argument("--refresh", action="store_true", help="Revalue holdings at fresh quotes")

    sub.add_parser("stats", help="Show portfolio statistics")
    sub.add_parser("reset", help="Reset the portfolio to initial cash")

    ticker = sub.add_parser("ticker", help="Simulate live price movement")
    ticker.add_argument("movie_ids", nargs="*", type=int)
    ticker.add_argument("--ticks", type=int, default=None, help="Stop after this many ticks")
    return parser


async def _run(args: argparse.Namespace) -> int:
    services = build_services(args.settings)
    try:
        return await run_command(args, services)
    finally:
        await services.close()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    args.settings = Settings()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
