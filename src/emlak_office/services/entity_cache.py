"""Per-session cache of whole entity collections.

Each ``EntityKind`` holds one collection, loaded on first read and swapped
wholesale afterwards; there is no per-record update. A successful write
invalidates its kind so the next read refetches. ``optimistic`` shows a
speculative collection while a write is in flight and restores the
previous one if the write fails.
"""
from __future__ import annotations

import enum
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from emlak_office.core.logging_config import get_logger

LOGGER = get_logger(__name__)

Loader = Callable[[], Sequence[Any]]


class EntityKind(str, enum.Enum):
    CUSTOMERS = "customers"
    PROPERTIES = "properties"
    SALES = "sales"
    USERS = "users"
    LOCATIONS = "locations"


@dataclass(frozen=True)
class CacheEntry:
    """An immutable snapshot of one collection."""

    value: tuple
    created_at: float
    ttl_seconds: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        """Entries without a TTL live until invalidated."""
        if self.ttl_seconds is None:
            return False
        return now - self.created_at > self.ttl_seconds


class EntityCache:
    """
    Read-through collection cache owned by one session.

    Not a singleton: create one per operator session and pass it to the
    services that share it.
    """

    def __init__(
        self,
        loaders: Optional[Dict[EntityKind, Loader]] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            loaders: Fetch function per kind, called on a miss.
            ttl_seconds: Optional expiry; None keeps entries until invalidated.
            clock: Time source (seconds).
        """
        self._loaders: Dict[EntityKind, Loader] = dict(loaders or {})
        self._entries: Dict[EntityKind, CacheEntry] = {}
        self._ttl = ttl_seconds
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def register_loader(self, kind: EntityKind, loader: Loader) -> None:
        self._loaders[EntityKind(kind)] = loader

    def _store(self, kind: EntityKind, items: Sequence[Any]) -> CacheEntry:
        entry = CacheEntry(value=tuple(items), created_at=self._clock(), ttl_seconds=self._ttl)
        # Single reference swap; readers see either the old or the new tuple
        self._entries[kind] = entry
        return entry

    def _fresh_entry(self, kind: EntityKind) -> Optional[CacheEntry]:
        entry = self._entries.get(kind)
        if entry is not None and entry.is_expired(self._clock()):
            LOGGER.debug(f"Cache entry for {kind.value} expired")
            self._entries.pop(kind, None)
            return None
        return entry

    def get_all(self, kind: EntityKind) -> List[Any]:
        """
        Get a collection, loading it on a miss.

        Loader errors propagate and leave the cache unchanged.

        Raises:
            KeyError: No loader is registered for ``kind``.
        """
        kind = EntityKind(kind)
        entry = self._fresh_entry(kind)
        if entry is not None:
            self._hits += 1
            return list(entry.value)

        self._misses += 1
        loader = self._loaders.get(kind)
        if loader is None:
            raise KeyError(f"No loader registered for {kind.value}")
        items = loader()
        return list(self._store(kind, items).value)

    def peek(self, kind: EntityKind) -> Optional[List[Any]]:
        """Cached collection without loading, or None."""
        entry = self._fresh_entry(EntityKind(kind))
        return list(entry.value) if entry is not None else None

    def replace(self, kind: EntityKind, items: Sequence[Any]) -> None:
        """Swap in a whole collection."""
        self._store(EntityKind(kind), items)

    def invalidate(self, kind: EntityKind) -> bool:
        """
        Drop a collection so the next read refetches.

        Returns:
            True if something was cached.
        """
        kind = EntityKind(kind)
        existed = self._entries.pop(kind, None) is not None
        if existed:
            LOGGER.debug(f"Invalidated {kind.value} cache")
        return existed

    def invalidate_all(self) -> None:
        self._entries.clear()

    @contextmanager
    def optimistic(
        self,
        kind: EntityKind,
        mutate: Callable[[List[Any]], Sequence[Any]],
    ) -> Iterator[List[Any]]:
        """
        Apply a speculative change around a write.

        The current collection is snapshotted, ``mutate`` produces the
        speculative one which is cached immediately, and the block runs the
        write. On success the kind is invalidated so the server copy is
        refetched; on failure the snapshot is restored and the error
        re-raised.

        Example:
            with cache.optimistic(EntityKind.USERS, lambda users: [...]):
                client.put(...)
        """
        kind = EntityKind(kind)
        snapshot = self._fresh_entry(kind)
        current = list(snapshot.value) if snapshot is not None else self.get_all(kind)
        if snapshot is None:
            snapshot = self._entries.get(kind)
        speculative = list(mutate(list(current)))
        self._store(kind, speculative)

        try:
            yield speculative
        except Exception:
            if snapshot is not None:
                self._entries[kind] = snapshot
            else:
                self._entries.pop(kind, None)
            LOGGER.info(f"Rolled back optimistic {kind.value} update")
            raise
        self.invalidate(kind)

    @property
    def hit_rate(self) -> float:
        """Get the cache hit rate (0.0 - 1.0)."""
        total = self._hits + self._misses
        if total == 0:
            return 0.0
        return self._hits / total

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "kinds": sorted(kind.value for kind in self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self.hit_rate, 3),
        }


__all__ = [
    "EntityKind",
    "CacheEntry",
    "EntityCache",
]
