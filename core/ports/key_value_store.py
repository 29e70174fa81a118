from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """Durable, non-transactional string store; failures raise PersistenceError."""

    async def get(self, key: str) -> str | None:
        """Return the stored value or None when the key is absent."""

    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    async def remove(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""

    async def close(self) -> None:
        """Close any underlying resources."""
