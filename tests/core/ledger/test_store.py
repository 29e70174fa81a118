from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from adapters.runtime import SequentialTransactionIds
from adapters.storage.memory_kv_store import InMemoryKeyValueStore
from core.domain.errors import PersistenceError
from core.domain.portfolio import Holding, Portfolio
from core.domain.price import MoviePrice
from core.ledger.store import PORTFOLIO_STORAGE_KEY, PortfolioStore
from core.ledger.trading import TradeProcessor


class BrokenStore:
    async def get(self, key: str) -> str | None:
        raise PersistenceError("connection refused")

    async def set(self, key: str, value: str) -> None:
        raise PersistenceError("connection refused")

    async def remove(self, key: str) -> None:
        raise PersistenceError("connection refused")

    async def close(self) -> None:
        return None


def _quote(movie_id: int, price: float) -> MoviePrice:
    return MoviePrice(
        movie_id=movie_id,
        base_price=price,
        current_price=price,
        volume=1000,
        market_cap=price * 1000 * 1000,
        volatility=0.1,
        last_updated=datetime(2024, 6, 12, tzinfo=UTC),
    )


def _portfolio_with_holdings(store: PortfolioStore, clock) -> Portfolio:
    holdings = {
        1: Holding.open(1, "Alpha", "", 10, 40.0),
        2: Holding.open(2, "Beta", "", 5, 60.0),
    }
    portfolio = Portfolio.fresh(clock.now()).model_copy(update={"cash": 99_300.0, "holdings": holdings})
    return store.recalculate(portfolio)


def test_initialize_persists_fresh_portfolio(clock) -> None:
    kv = InMemoryKeyValueStore()
    store = PortfolioStore(kv, clock=clock)

    portfolio = asyncio.run(store.initialize())

    assert portfolio.cash == 100_000
    assert portfolio.total_value == 100_000
    assert portfolio.total_invested == 0
    assert portfolio.total_profit_loss == 0
    assert portfolio.holdings == {}
    assert portfolio.transactions == []
    assert portfolio.created_at == clock.now()
    assert Portfolio.model_validate_json(asyncio.run(kv.get(PORTFOLIO_STORAGE_KEY))).cash == 100_000


def test_load_returns_persisted_state(clock) -> None:
    kv = InMemoryKeyValueStore()
    store = PortfolioStore(kv, clock=clock)
    saved = _portfolio_with_holdings(store, clock)
    asyncio.run(store.save(saved))

    loaded = asyncio.run(store.load())

    assert loaded == saved
    assert list(loaded.holdings) == [1, 2]


@pytest.mark.parametrize("payload", [None, "", "{not json", '{"cash": "lots"}'], ids=["absent", "empty", "garbage", "invalid"])
def test_load_recovers_missing_or_corrupt_record(clock, payload) -> None:
    initial = {} if payload is None else {PORTFOLIO_STORAGE_KEY: payload}
    kv = InMemoryKeyValueStore(initial)
    store = PortfolioStore(kv, clock=clock)

    portfolio = asyncio.run(store.load())

    assert portfolio.cash == 100_000
    assert Portfolio.model_validate_json(asyncio.run(kv.get(PORTFOLIO_STORAGE_KEY))) == portfolio


def test_load_and_initialize_survive_store_outage(clock) -> None:
    store = PortfolioStore(BrokenStore(), clock=clock)

    portfolio = asyncio.run(store.load())
    reset = asyncio.run(store.reset())

    assert portfolio.cash == 100_000
    assert reset.cash == 100_000


def test_refresh_prices_revalues_holdings(clock) -> None:
    store = PortfolioStore(InMemoryKeyValueStore(), clock=clock)
    portfolio = _portfolio_with_holdings(store, clock)
    quotes = {1: 50.0, 2: 50.0}

    async def quote_fn(movie_id: int) -> MoviePrice:
        return _quote(movie_id, quotes[movie_id])

    refreshed = asyncio.run(store.refresh_prices(portfolio, quote_fn))

    alpha, beta = refreshed.holdings[1], refreshed.holdings[2]
    assert alpha.total_value == 500
    assert alpha.profit_loss == 100
    assert alpha.profit_loss_percent == pytest.approx(25)
    assert beta.profit_loss == -50
    assert beta.profit_loss_percent == pytest.approx(-16.6667, abs=1e-3)
    assert refreshed.total_value == pytest.approx(99_300 + 500 + 250)
    assert refreshed.total_invested == pytest.approx(700)
    assert refreshed.total_profit_loss == pytest.approx(50)
    assert refreshed.total_profit_loss_percent == pytest.approx(0.05)
    assert asyncio.run(store.load()) == refreshed


def test_refresh_prices_keeps_stale_price_on_quote_failure(clock) -> None:
    store = PortfolioStore(InMemoryKeyValueStore(), clock=clock)
    portfolio = _portfolio_with_holdings(store, clock)

    async def quote_fn(movie_id: int) -> MoviePrice:
        if movie_id == 2:
            raise TimeoutError("catalog timed out")
        return _quote(movie_id, 44.0)

    refreshed = asyncio.run(store.refresh_prices(portfolio, quote_fn))

    assert refreshed.holdings[1].current_price == 44.0
    assert refreshed.holdings[2] == portfolio.holdings[2]
    assert refreshed.total_value == pytest.approx(99_300 + 440 + 300)


def test_refresh_prices_tolerates_write_failure(clock) -> None:
    store = PortfolioStore(BrokenStore(), clock=clock)
    portfolio = _portfolio_with_holdings(store, clock)

    async def quote_fn(movie_id: int) -> MoviePrice:
        return _quote(movie_id, 50.0)

    refreshed = asyncio.run(store.refresh_prices(portfolio, quote_fn))

    assert refreshed.holdings[1].current_price == 50.0


def test_reset_discards_state(clock) -> None:
    kv = InMemoryKeyValueStore()
    store = PortfolioStore(kv, clock=clock, initial_cash=25_000)
    asyncio.run(store.save(_portfolio_with_holdings(store, clock)))

    portfolio = asyncio.run(store.reset())

    assert portfolio.cash == 25_000
    assert portfolio.holdings == {}
    assert asyncio.run(store.load()) == portfolio


def test_refresh_prices_keeps_trades_committed_after_snapshot(clock) -> None:
    store = PortfolioStore(InMemoryKeyValueStore(), clock=clock)
    trades = TradeProcessor(store, clock=clock, ids=SequentialTransactionIds())
    asyncio.run(trades.buy(1, "Alpha", "", 10, 50))
    asyncio.run(trades.buy(3, "Gamma", "", 4, 25))
    snapshot = asyncio.run(store.load())
    asyncio.run(trades.buy(2, "Beta", "", 1, 40))
    asyncio.run(trades.sell(3, 4, 30))

    async def quote_fn(movie_id: int) -> MoviePrice:
        return _quote(movie_id, 60.0)

    refreshed = asyncio.run(store.refresh_prices(snapshot, quote_fn))

    assert sorted(refreshed.holdings) == [1, 2]
    assert len(refreshed.transactions) == 4
    assert refreshed.cash == pytest.approx(100_000 - 500 - 100 - 40 + 120)
    assert refreshed.holdings[2].current_price == 60.0
    assert asyncio.run(store.load()) == refreshed
