"""
Decision cache.

Maps a context fingerprint to a finished Decision for a fixed TTL. Entries
are built completely before being published under the lock, so a reader
sees either a whole entry or nothing. Expired and malformed entries are
dropped and reported as misses.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .ai_resilience import CacheCorruptionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    decision: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class DecisionCache:
    """TTL + capacity bounded cache with hit/miss counters. Thread-safe."""

    def __init__(self, ttl_seconds: float = 30.0, max_size: int = 1000,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.corrupt = 0
        self.evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._entries

    def get(self, fingerprint: str) -> Optional[Any]:
        """Live decision for the fingerprint, or None."""
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                self.misses += 1
                return None

            try:
                self._check_entry(fingerprint, entry)
            except CacheCorruptionError as e:
                logger.warning(f"Dropping corrupt cache entry: {e}")
                del self._entries[fingerprint]
                self.corrupt += 1
                self.misses += 1
                return None

            if entry.is_expired(self._clock()):
                logger.debug(f"Cache entry {fingerprint[:12]} expired")
                del self._entries[fingerprint]
                self.misses += 1
                return None

            self.hits += 1
            return entry.decision

    def put(self, fingerprint: str, decision: Any) -> CacheEntry:
        """Publish a finished decision. Oldest entries are evicted past capacity."""
        entry = CacheEntry(
            fingerprint=fingerprint,
            decision=decision,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            self._entries.pop(fingerprint, None)
            self._entries[fingerprint] = entry
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug(f"Cache full, evicted {evicted[:12]}")
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Decision cache cleared")

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            size = len(self._entries)
        return {
            'size': size,
            'max_size': self.max_size,
            'ttl_seconds': self.ttl_seconds,
            'hits': self.hits,
            'misses': self.misses,
            'corrupt': self.corrupt,
            'evictions': self.evictions,
            'hit_rate': self.hit_rate,
        }

    @staticmethod
    def _check_entry(fingerprint: str, entry: Any) -> None:
        if not isinstance(entry, CacheEntry):
            raise CacheCorruptionError(f"{fingerprint[:12]}: not a CacheEntry ({type(entry).__name__})")
        if entry.fingerprint != fingerprint:
            raise CacheCorruptionError(f"{fingerprint[:12]}: stored under the wrong key")
        if entry.decision is None:
            raise CacheCorruptionError(f"{fingerprint[:12]}: empty decision")
        if not isinstance(entry.expires_at, (int, float)):
            raise CacheCorruptionError(f"{fingerprint[:12]}: bad expiry {entry.expires_at!r}")
        decision_key = getattr(entry.decision, 'fingerprint', fingerprint)
        if decision_key != fingerprint:
            raise CacheCorruptionError(f"{fingerprint[:12]}: decision belongs to another context")
