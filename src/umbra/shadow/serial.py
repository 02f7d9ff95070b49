"""Caller-side single-writer queue keyed by shadow repository."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Hashable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RepositoryQueue:
    """Runs at most one operation per repository key at a time.

    Operations on different keys run concurrently; operations on the same key
    run in arrival order.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._pending: dict[Hashable, int] = defaultdict(int)

    def pending(self, key: Hashable) -> int:
        return self._pending.get(key, 0)

    async def run(self, key: Hashable, operation: Callable[[], Awaitable[T]]) -> T:
        self._pending[key] += 1
        try:
            async with self._locks[key]:
                logger.debug("Running queued repository operation", extra={"key": str(key)})
                return await operation()
        finally:
            self._pending[key] -= 1
            if self._pending[key] == 0:
                del self._pending[key]
                lock = self._locks.get(key)
                if lock is not None and not lock.locked():
                    del self._locks[key]


__all__ = ["RepositoryQueue"]
