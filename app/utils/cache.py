"""Expiring memo of successful corpus searches."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

SearchKey = Tuple[str, int]


@dataclass
class _Slot:
    output: Any
    stored_at: float


class SearchCache:
    """
    Remembers search outputs per ``(query, max_results)`` for ``ttl_seconds``.

    Ages are measured on a monotonic clock so wall-clock jumps cannot revive or
    expire entries. A non-positive TTL disables the cache: ``store`` does
    nothing and every ``lookup`` is a miss. ``hits`` and ``misses`` count
    lookups since construction or the last ``clear``.
    """

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._slots: Dict[SearchKey, _Slot] = {}
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def lookup(self, query: str, max_results: int) -> Optional[Any]:
        key = (query, max_results)
        slot = self._slots.get(key)
        if slot is not None and self._clock() - slot.stored_at >= self.ttl_seconds:
            del self._slots[key]
            slot = None
        if slot is None:
            self.misses += 1
            return None
        self.hits += 1
        return slot.output

    def store(self, query: str, max_results: int, output: Any) -> None:
        if not self.enabled:
            return
        self._slots[(query, max_results)] = _Slot(output=output, stored_at=self._clock())

    def clear(self) -> None:
        self._slots.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._slots)
