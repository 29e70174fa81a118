import logging
import os
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.portfolio import INITIAL_CASH

logger = logging.getLogger(__name__)

DEFAULT_TMDB_BASE_URL = "https://api.themoviedb.org/3"

_STORAGE_BACKENDS = {"memory", "redis", "sqlite"}

_KNOWN_MARKET_ENV_KEYS = {
    "MARKET_STORAGE_BACKEND",
    "MARKET_KEY_NAMESPACE",
    "MARKET_PROFILE_ID",
    "MARKET_PORTFOLIO_KEY",
    "MARKET_INITIAL_CASH",
    "MARKET_TICKER_INTERVAL_SECONDS",
    "MARKET_REFRESH_EVERY_TICKS",
}


def _warn_unknown_prefixed_env(prefix: str, known_keys: set[str]) -> None:
    unknown = sorted(key for key in os.environ if key.startswith(prefix) and key not in known_keys)
    if unknown:
        logger.warning("Unknown %s env vars ignored: %s", prefix, ", ".join(unknown))


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    storage_backend: str = Field(
        default="sqlite",
        validation_alias=AliasChoices("market_storage_backend", "MARKET_STORAGE_BACKEND", "storage_backend"),
    )
    database_url: str = Field(
        default="sqlite:///./data/market.db",
        validation_alias=AliasChoices("database_url", "DATABASE_URL", "db_url", "sqlite_url"),
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", validation_alias=AliasChoices("redis_url", "REDIS_URL")
    )
    key_namespace: str = Field(
        default="moviemarket",
        validation_alias=AliasChoices("market_key_namespace", "MARKET_KEY_NAMESPACE", "key_namespace"),
    )
    profile_id: str = Field(
        default="default",
        validation_alias=AliasChoices("market_profile_id", "MARKET_PROFILE_ID", "profile_id"),
    )
    portfolio_key: str = Field(
        default="movie_portfolio",
        validation_alias=AliasChoices("market_portfolio_key", "MARKET_PORTFOLIO_KEY", "portfolio_key"),
    )
    initial_cash: float = Field(
        default=INITIAL_CASH,
        gt=0,
        validation_alias=AliasChoices("market_initial_cash", "MARKET_INITIAL_CASH", "initial_cash"),
    )
    tmdb_base_url: str = Field(
        default=DEFAULT_TMDB_BASE_URL,
        validation_alias=AliasChoices("tmdb_base_url", "TMDB_BASE_URL"),
    )
    tmdb_api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tmdb_api_token", "TMDB_API_TOKEN", "tmdb_api_key", "TMDB_API_KEY"),
    )
    tmdb_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("tmdb_timeout_seconds", "TMDB_TIMEOUT_SECONDS"),
    )
    ticker_interval_seconds: int = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices(
            "market_ticker_interval_seconds", "MARKET_TICKER_INTERVAL_SECONDS", "ticker_interval"
        ),
    )
    refresh_every_ticks: int = Field(
        default=12,
        ge=1,
        validation_alias=AliasChoices("market_refresh_every_ticks", "MARKET_REFRESH_EVERY_TICKS"),
    )

    @field_validator("storage_backend")
    @classmethod
    def _validate_storage_backend(cls, value: str) -> str:
        backend = value.strip().lower()
        if backend not in _STORAGE_BACKENDS:
            raise ValueError(f"storage_backend must be one of {sorted(_STORAGE_BACKENDS)}, got {value!r}")
        return backend

    @model_validator(mode="after")
    def _warn(self) -> "Settings":
        if self.storage_backend == "memory":
            logger.warning("MARKET_STORAGE_BACKEND=memory; portfolio state will not survive restarts")
        if not self.tmdb_api_token:
            logger.warning("TMDB_API_TOKEN not set; catalog lookups will fall back to default prices")
        _warn_unknown_prefixed_env("MARKET_", _KNOWN_MARKET_ENV_KEYS)
        return self

    @property
    def portfolio_storage_key(self) -> str:
        """Portfolio record key, scoped per profile."""
        if self.profile_id == "default":
            return self.portfolio_key
        return f"{self.portfolio_key}:{self.profile_id}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Cached accessor so we only load settings once per process."""
    return Settings()
