"""
Structural memoization cache.

Keys are tuples of immutable shapes/types/ints, so two structurally equal
inputs share one entry. Each key is computed at most once: a registry lock
hands out one lock per key, and concurrent callers of the same key wait on it
instead of recomputing.
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, TypeVar

logger = logging.getLogger("tuplety.utils.cache")

V = TypeVar('V')

_MISSING = object()


class ShapeCache:
    """
    In-memory memo table keyed by structural identity.

    Entries are never evicted; long-running callers reset it with ``clear()``
    (or ``TyCtxt.clear_caches()``) between analysis runs.
    """

    def __init__(self, name: str, enabled: bool = True):
        self.name = name
        self.enabled = enabled
        self._values: Dict[Hashable, Any] = {}
        self._key_locks: Dict[Hashable, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        if not self.enabled:
            return compute()

        value = self._values.get(key, _MISSING)
        if value is not _MISSING:
            self.hits += 1
            return value

        with self._registry_lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        try:
            with key_lock:
                value = self._values.get(key, _MISSING)
                if value is not _MISSING:
                    self.hits += 1
                    logger.debug(f"[{self.name}] hit after wait: {key!r}")
                    return value
                self.misses += 1
                value = compute()
                self._values[key] = value
                return value
        finally:
            # a failed compute leaves nothing behind; the next caller retries
            with self._registry_lock:
                self._key_locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def clear(self) -> None:
        with self._registry_lock:
            self._values.clear()
            self._key_locks.clear()
        self.hits = 0
        self.misses = 0
