from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from core.domain.errors import CatalogError, MovieNotFoundError
from core.domain.movie import MovieAttributes
from core.settings import DEFAULT_TMDB_BASE_URL

logger = logging.getLogger(__name__)


class TmdbMovieCatalog:
    """Movie catalog backed by The Movie Database v3 API."""

    def __init__(
        self,
        api_token: str | None,
        *,
        base_url: str = DEFAULT_TMDB_BASE_URL,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout_seconds)

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError:
            raise
        except httpx.HTTPError as exc:
            logger.exception("TMDB request failed: %s", path)
            raise CatalogError(f"Failed to call TMDB: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogError(f"TMDB returned a non-JSON body for {path}") from exc

    async def get_movie_attributes(self, movie_id: int) -> MovieAttributes:
        try:
            payload = await self._get_json(f"/movie/{movie_id}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise MovieNotFoundError(movie_id) from exc
            raise CatalogError(f"TMDB returned {exc.response.status_code} for movie {movie_id}") from exc
        if not isinstance(payload, dict):
            raise CatalogError(f"Unexpected TMDB payload for movie {movie_id}: {type(payload).__name__}")

        try:
            return MovieAttributes.from_tmdb(payload)
        except ValidationError as exc:
            raise CatalogError(f"Unusable TMDB payload for movie {movie_id}") from exc

    async def discover_popular(self, *, page: int = 1) -> list[MovieAttributes]:
        """Popular movies (list payloads carry no budget or revenue)."""
        try:
            payload = await self._get_json(
                "/discover/movie", params={"sort_by": "popularity.desc", "page": str(page)}
            )
        except httpx.HTTPStatusError as exc:
            raise CatalogError(f"TMDB discover returned {exc.response.status_code}") from exc
        if not isinstance(payload, dict):
            raise CatalogError(f"Unexpected TMDB discover payload: {type(payload).__name__}")

        movies: list[MovieAttributes] = []
        results = payload.get("results")
        for item in results if isinstance(results, list) else []:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object TMDB result %r", item)
                continue
            try:
                movies.append(MovieAttributes.from_tmdb(item))
            except ValidationError:
                logger.warning("Skipping malformed TMDB result id=%s", item.get("id"))
        return movies

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["TmdbMovieCatalog"]
