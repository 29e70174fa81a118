from __future__ import annotations

import asyncio

import httpx
import pytest

from adapters.catalog.tmdb import TmdbMovieCatalog
from core.domain.errors import CatalogError, MovieNotFoundError
from core.domain.price import BASE_PRICE
from core.market.pricing import PriceEngine


def _catalog(handler) -> TmdbMovieCatalog:
    client = httpx.AsyncClient(base_url="https://tmdb.test/3", transport=httpx.MockTransport(handler))
    return TmdbMovieCatalog("token", client=client)


def test_get_movie_attributes_parses_details() -> None:
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        return httpx.Response(
            200,
            json={
                "id": 27205,
                "title": "Inception",
                "popularity": 83.9,
                "vote_average": 8.4,
                "vote_count": 35000,
                "release_date": "2010-07-15",
                "budget": 160000000,
                "revenue": 839030630,
                "genres": [{"id": 28, "name": "Action"}],
            },
        )

    attrs = asyncio.run(_catalog(handler).get_movie_attributes(27205))

    assert captured["path"] == "/3/movie/27205"
    assert attrs.movie_id == 27205
    assert attrs.primary_genre == 28
    assert attrs.revenue == 839030630


def test_not_found_maps_to_movie_not_found() -> None:
    catalog = _catalog(lambda request: httpx.Response(404, json={"status_message": "not found"}))

    with pytest.raises(MovieNotFoundError):
        asyncio.run(catalog.get_movie_attributes(1))


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500, json={}),
        lambda request: httpx.Response(200, json={"id": 1, "vote_average": 42}),
        lambda request: httpx.Response(200, text="<html>gateway</html>"),
        lambda request: httpx.Response(200, json=[{"id": 1}]),
        lambda request: httpx.Response(200, json="movie"),
    ],
    ids=["server_error", "bad_payload", "html_body", "list_body", "scalar_body"],
)
def test_unusable_responses_raise_catalog_error(handler) -> None:
    with pytest.raises(CatalogError):
        asyncio.run(_catalog(handler).get_movie_attributes(1))


def test_transport_failures_raise_catalog_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(CatalogError):
        asyncio.run(_catalog(handler).get_movie_attributes(1))


def test_discover_popular_skips_malformed_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["sort_by"] == "popularity.desc"
        return httpx.Response(
            200,
            json={"results": [{"id": 1, "genre_ids": [35]}, {"id": 2, "vote_count": -5}]},
        )

    movies = asyncio.run(_catalog(handler).discover_popular())

    assert [movie.movie_id for movie in movies] == [1]
    assert movies[0].primary_genre == 35


def test_discover_popular_rejects_non_object_payloads() -> None:
    with pytest.raises(CatalogError):
        asyncio.run(_catalog(lambda request: httpx.Response(200, text="oops")).discover_popular())

    catalog = _catalog(lambda request: httpx.Response(200, json={"results": ["junk", {"id": 5}]}))
    assert [movie.movie_id for movie in asyncio.run(catalog.discover_popular())] == [5]


def test_engine_falls_back_when_tmdb_sends_garbage(clock, neutral_rng) -> None:
    engine = PriceEngine(
        _catalog(lambda request: httpx.Response(200, text="<html>gateway</html>")), clock=clock, rng=neutral_rng
    )

    price = asyncio.run(engine.quote(1))

    assert price.movie_id == 1
    assert price.current_price == BASE_PRICE
