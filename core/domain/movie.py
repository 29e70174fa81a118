from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _first_genre_id(genres: Any) -> int | None:
    if not isinstance(genres, list) or not genres:
        return None
    first = genres[0]
    if isinstance(first, dict):
        first = first.get("id")
    try:
        return int(first) if first is not None else None
    except (TypeError, ValueError):
        return None


class MovieAttributes(BaseModel):
    """Catalog metadata snapshot used to derive a movie's synthetic price."""

    movie_id: int = Field(validation_alias=AliasChoices("movie_id", "id"))
    title: str | None = None
    poster_path: str | None = None
    popularity: float = Field(default=0.0, ge=0)
    vote_average: float = Field(default=0.0, ge=0, le=10)
    vote_count: int = Field(default=0, ge=0)
    primary_genre: int | None = None
    release_date: date | None = None
    budget: float = Field(default=0.0, ge=0)
    revenue: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> date | None:
        if value in (None, ""):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            return None

    @field_validator("popularity", "vote_average", "budget", "revenue", "vote_count", mode="before")
    @classmethod
    def _none_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @classmethod
    def from_tmdb(cls, payload: dict[str, Any]) -> MovieAttributes:
        """Map a TMDB movie details (or list item) payload into attributes."""
        raw = dict(payload)
        if "primary_genre" not in raw:
            raw["primary_genre"] = _first_genre_id(raw.get("genres") or raw.get("genre_ids"))
        return cls.model_validate(raw)


__all__ = ["MovieAttributes"]
