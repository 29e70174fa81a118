from __future__ import annotations

import asyncio

from adapters.storage.memory_kv_store import InMemoryKeyValueStore


def test_instances_do_not_share_state() -> None:
    first = InMemoryKeyValueStore()
    second = InMemoryKeyValueStore({"seed": "1"})

    asyncio.run(first.set("movie_portfolio", "payload"))

    assert asyncio.run(second.get("movie_portfolio")) is None
    assert asyncio.run(second.get("seed")) == "1"
    asyncio.run(first.remove("movie_portfolio"))
    asyncio.run(first.remove("movie_portfolio"))
    assert asyncio.run(first.get("movie_portfolio")) is None
