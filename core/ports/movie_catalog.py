from __future__ import annotations

from typing import Protocol

from core.domain.movie import MovieAttributes


class MovieCatalog(Protocol):
    """Read-only access to movie metadata."""

    async def get_movie_attributes(self, movie_id: int) -> MovieAttributes:
        """Return attributes for a movie or raise MovieNotFoundError / CatalogError."""

    async def discover_popular(self, *, page: int = 1) -> list[MovieAttributes]:
        """Return one page of currently popular movies, most popular first."""
