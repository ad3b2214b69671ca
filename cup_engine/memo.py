"""
Append-only memo tables.

Every derived object in the world (squads, hosts, tournaments) is computed
once per key and then shared. Entries are never mutated after insertion, so
readers go through a lock-free fast path; writers serialize on a re-entrant
lock, which keeps at most one computation per key even when FastAPI runs
endpoints in its thread pool and lets a computation fill earlier keys of the
same table on the way.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_log = logging.getLogger("cupsim.memo")


class MemoTable(Generic[K, V]):
    """Write-once mapping with a single-writer compute path."""

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[K, V] = {}
        self._lock = threading.RLock()

    def get(self, key: K) -> Optional[V]:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> Iterator[K]:
        return iter(list(self._entries))

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        if key in self._entries:
            return self._entries[key]
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            _log.debug(f"{self.name}: computing {key!r}")
            value = compute()
            self._entries[key] = value
            return value

    def put_once(self, key: K, value: V) -> V:
        """Insert ``value`` unless the key already exists; return the stored entry."""
        with self._lock:
            return self._entries.setdefault(key, value)

    def clear(self):
        """Drop every entry. Test-only."""
        with self._lock:
            self._entries.clear()

    @property
    def lock(self) -> threading.RLock:
        return self._lock
