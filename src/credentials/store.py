"""Namespaced key-value store with per-entry TTL."""

import time
from typing import Callable, NamedTuple, Protocol

from cachetools import TLRUCache


class KeyValueStore(Protocol):
    """Narrow interface over the credential store.
    
    Writes replace the whole value, so a reader sees either the previous
    value or the new one.
    """
    
    async def get(self, key: str) -> str | None:
        ...
    
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        ...


class _Entry(NamedTuple):
    value: str
    ttl_seconds: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class MemoryKeyValueStore:
    """In-process store backed by a TLRU cache.
    
    Entries expire individually after the TTL given at write time.
    """
    
    def __init__(
        self,
        namespace: str = "",
        maxsize: int = 256,
        timer: Callable[[], float] = time.monotonic,
    ):
        """Initialize the store.
        
        Args:
            namespace: Prefix applied to every key.
            maxsize: Maximum number of live entries.
            timer: Clock used for expiry, in seconds.
        """
        self.namespace = namespace
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )
    
    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key
    
    async def get(self, key: str) -> str | None:
        entry = self._cache.get(self._key(key))
        return entry.value if entry is not None else None
    
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self._cache.pop(self._key(key), None)
            return
        self._cache[self._key(key)] = _Entry(value, float(ttl_seconds))
    
    def clear(self) -> None:
        """Drop every entry."""
        self._cache.clear()
