# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

"""
Decode cache for parsed composite glyph records.

Resolution of different glyphs may run on several threads against one table.
The cache is shared between them, so it is guarded by a lock and fills each
key at most once: a thread that misses takes a per-key lock, and any thread
racing it for the same key waits and then reads the stored entry instead of
parsing again.

Eviction is LRU by entry count, as in the glyph path cache.
"""

import threading
from collections import OrderedDict
from typing import Any, Callable, Hashable


class RecordCache:
    """Thread-safe LRU cache with at-most-once fill per key."""
    DEFAULT_MAX_ENTRIES = 4096

    def __init__(self, max_entries: int | None = None) -> None:
        """
        Args:
            max_entries: Maximum cached records before LRU eviction.
                         Defaults to DEFAULT_MAX_ENTRIES (4096).
        """
        self._cache: OrderedDict[Hashable, Any] = OrderedDict()
        self._max_entries = max_entries or self.DEFAULT_MAX_ENTRIES
        self._lock = threading.Lock()
        self._pending: dict[Hashable, threading.Lock] = {}
        self._hits = 0
        self._misses = 0

    def _lookup(self, key: Hashable) -> tuple[bool, Any]:
        # Caller holds self._lock.
        if key in self._cache:
            self._hits += 1
            self._cache.move_to_end(key)
            return True, self._cache[key]
        return False, None

    def get_or_parse(self, key: Hashable, parse: Callable[[], Any]) -> Any:
        """Return the cached value for key, calling parse() on a miss.

        Exceptions from parse() propagate and nothing is cached.
        """
        with self._lock:
            found, value = self._lookup(key)
            if found:
                return value
            key_lock = self._pending.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                found, value = self._lookup(key)
                if found:
                    return value
            try:
                value = parse()
            except BaseException:
                with self._lock:
                    self._pending.pop(key, None)
                raise
            with self._lock:
                self._misses += 1
                self._cache[key] = value
                self._pending.pop(key, None)
                if len(self._cache) > self._max_entries:
                    self._cache.popitem(last=False)
            return value

    def clear(self) -> None:
        """Clear entire cache and reset statistics."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict:
        """Return cache statistics for debugging/profiling."""
        with self._lock:
            total = self._hits + self._misses
            return {
                'entries': len(self._cache),
                'max_entries': self._max_entries,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0.0,
            }

    def __len__(self) -> int:
        return len(self._cache)
