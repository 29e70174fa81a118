from __future__ import annotations

import itertools
import threading
from datetime import datetime
from uuid import uuid4


class SystemClock:
    """Local wall-clock time with the local UTC offset attached."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


class UuidTransactionIds:
    def __init__(self, prefix: str = "tx") -> None:
        self._prefix = prefix

    def next_id(self) -> str:
        return f"{self._prefix}_{uuid4().hex}"


class SequentialTransactionIds:
    """Monotonic ids for deterministic runs; seed ``start`` past any ids already issued."""

    def __init__(self, prefix: str = "tx", *, start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            value = next(self._counter)
        return f"{self._prefix}_{value:08d}"


__all__ = ["SequentialTransactionIds", "SystemClock", "UuidTransactionIds"]
