from __future__ import annotations


class MovieMarketError(Exception):
    """Base class for infrastructure failures raised by adapters."""


class PersistenceError(MovieMarketError):
    """The key-value store could not be read or written."""


class CatalogError(MovieMarketError):
    """The movie catalog could not be reached or returned an unusable payload."""


class MovieNotFoundError(CatalogError):
    def __init__(self, movie_id: int) -> None:
        super().__init__(f"Movie with ID {movie_id} not found")
        self.movie_id = movie_id


__all__ = ["CatalogError", "MovieMarketError", "MovieNotFoundError", "PersistenceError"]
