from __future__ import annotations

import asyncio

import pytest

from adapters.storage.sqlalchemy_kv_store import SqlAlchemyKeyValueStore
from core.domain.errors import PersistenceError


def test_set_get_and_remove(tmp_path) -> None:
    db_path = tmp_path / "market.db"
    store = SqlAlchemyKeyValueStore(f"sqlite:///{db_path}")

    assert asyncio.run(store.get("movie_portfolio")) is None

    asyncio.run(store.set("movie_portfolio", '{"cash": 1}'))
    asyncio.run(store.set("movie_portfolio", '{"cash": 2}'))
    assert asyncio.run(store.get("movie_portfolio")) == '{"cash": 2}'

    asyncio.run(store.remove("movie_portfolio"))
    asyncio.run(store.remove("movie_portfolio"))
    assert asyncio.run(store.get("movie_portfolio")) is None

    asyncio.run(store.close())


def test_values_survive_reopening(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'market.db'}"
    first = SqlAlchemyKeyValueStore(url)
    asyncio.run(first.set("movie_portfolio", "payload"))
    asyncio.run(first.close())

    second = SqlAlchemyKeyValueStore(url)

    assert asyncio.run(second.get("movie_portfolio")) == "payload"
    asyncio.run(second.close())


def test_missing_table_raises_persistence_error(tmp_path) -> None:
    store = SqlAlchemyKeyValueStore(f"sqlite:///{tmp_path / 'bare.db'}", create_tables=False)

    with pytest.raises(PersistenceError):
        asyncio.run(store.get("movie_portfolio"))
    with pytest.raises(PersistenceError):
        asyncio.run(store.set("movie_portfolio", "x"))

    asyncio.run(store.close())
