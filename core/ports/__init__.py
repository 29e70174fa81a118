"""Port interfaces for adapters."""

from core.ports.key_value_store import KeyValueStore
from core.ports.movie_catalog import MovieCatalog
from core.ports.runtime import Clock, RandomSource, TransactionIdGenerator

__all__ = ["Clock", "KeyValueStore", "MovieCatalog", "RandomSource", "TransactionIdGenerator"]
