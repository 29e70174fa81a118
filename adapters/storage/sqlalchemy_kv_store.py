from __future__ import annotations

import asyncio
import logging

from sqlalchemy import create_engine, delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from adapters.storage.models import Base, KeyValueRecord
from core.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


class SqlAlchemyKeyValueStore:
    """Key-value store backed by a single SQL table (SQLite by default)."""

    def __init__(self, database_url: str, *, create_tables: bool = True) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self._engine: Engine = create_engine(database_url, connect_args=connect_args, future=True)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        if create_tables:
            Base.metadata.create_all(self._engine)

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    async def close(self) -> None:
        self._engine.dispose()

    def _get(self, key: str) -> str | None:
        try:
            with self._session_factory() as session:
                record = session.get(KeyValueRecord, key)
                return record.value if record else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read {key}: {exc}") from exc

    def _set(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                session.merge(KeyValueRecord(key=key, value=value))
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write {key}: {exc}") from exc
        logger.debug("Stored %d bytes under %s", len(value), key)

    def _remove(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                session.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to remove {key}: {exc}") from exc
