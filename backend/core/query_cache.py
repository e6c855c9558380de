import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CacheEntry:
    data: Any = None
    stale: bool = True


class QueryCache:
    """
    Client-side query cache keyed by a logical resource name.

    Entries are never patched: a successful mutation calls ``invalidate`` and
    the next ``fetch`` reloads the whole resource. A failed load keeps the
    previous data and leaves the entry stale. A load that was already running
    when ``invalidate`` was called is stored as stale.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._generations: Dict[str, int] = {}

    def _lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def fetch(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        async with self._lock(key):
            entry = self._entries.get(key)
            if entry is not None and not entry.stale:
                return entry.data
            generation = self._generations.setdefault(key, 0)
            data = await loader()
            stale = self._generations.get(key, 0) != generation
            self._entries[key] = CacheEntry(data=data, stale=stale)
            return data

    def invalidate(self, key: str) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1
        entry = self._entries.get(key)
        if entry is not None:
            entry.stale = True

    def is_stale(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def peek(self, key: str) -> Optional[Any]:
        """Last loaded data for ``key`` (possibly stale), or None."""
        entry = self._entries.get(key)
        return entry.data if entry is not None else None

    def clear(self) -> None:
        """Drop every entry; loads still in flight are stored as stale."""
        for key in self._generations:
            self._generations[key] += 1
        self._entries.clear()
