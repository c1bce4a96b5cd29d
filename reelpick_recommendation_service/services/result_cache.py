"""In-process cache for computed rankings."""
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, Optional[str]]
TTL = Union[float, Callable[[Any], float]]


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class ResultCache:
    """
    Memoize rankings keyed by (subject_id, strategy, fingerprint).

    Safe to share between threads. Entries expire after their TTL and are
    dropped eagerly on invalidation. Writes sweep out expired entries at most
    once every check_period seconds. Two threads missing the same key may both
    compute; the last write wins.
    """

    def __init__(
            self,
            default_ttl: float = 1800,
            clock: Callable[[], float] = time.monotonic,
            check_period: float = 120
    ):
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._clock = clock
        self._next_purge = clock() + check_period
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def fingerprint(liked_item_ids: Iterable[Hashable], **extra) -> str:
        """
        Stable hash of a liked-item set plus any request parameters.

        Item order does not matter.
        """
        normalized = json.dumps(
            {'liked': sorted(str(i) for i in liked_item_ids), **extra},
            sort_keys=True,
            default=str
        )
        return hashlib.sha256(normalized.encode()).hexdigest()[:16]

    def get(self, subject_id: str, strategy: str, fingerprint: Optional[str] = None) -> Any | None:
        key = (subject_id, strategy, fingerprint)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() < entry.expires_at:
                self._hits += 1
                return entry.value
            if entry is not None:
                del self._entries[key]
            self._misses += 1
            return None

    def set(
            self,
            subject_id: str,
            strategy: str,
            fingerprint: Optional[str],
            value: Any,
            ttl: Optional[float] = None
    ) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            if now >= self._next_purge:
                self._next_purge = now + self.check_period
                purged = self._drop_expired(now)
                if purged:
                    logger.debug(f"Purged {purged} expired cached rankings")
            self._entries[(subject_id, strategy, fingerprint)] = CacheEntry(
                value=value,
                expires_at=now + lifetime,
            )

    def get_or_compute(
            self,
            subject_id: str,
            strategy: str,
            fingerprint: Optional[str],
            ttl: Optional[TTL],
            compute_fn: Callable[[], Any]
    ) -> Any:
        """
        Return the cached value for a key, computing and storing it on a miss.

        Args:
            subject_id: Subject the value belongs to
            strategy: Strategy name
            fingerprint: Input fingerprint (see `fingerprint`)
            ttl: Lifetime in seconds, or a function of the computed value returning one
            compute_fn: Called without arguments on a miss

        Returns:
            Cached or freshly computed value
        """
        cached = self.get(subject_id, strategy, fingerprint)
        if cached is not None:
            logger.debug(f"Cache hit: {subject_id}/{strategy}")
            return cached

        logger.debug(f"Cache miss: {subject_id}/{strategy}")
        value = compute_fn()
        lifetime = ttl(value) if callable(ttl) else ttl
        self.set(subject_id, strategy, fingerprint, value, lifetime)
        return value

    def invalidate_subject(self, subject_id: str) -> int:
        """Drop every entry belonging to one subject, across strategies."""
        with self._lock:
            keys = [key for key in self._entries if key[0] == subject_id]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.info(f"Invalidated {len(keys)} cached rankings for subject {subject_id}")
        return len(keys)

    def invalidate_all(self) -> int:
        """Drop every entry."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.info(f"Invalidated all {count} cached rankings")
        return count

    def _drop_expired(self, now: float) -> int:
        # Caller holds self._lock.
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            return self._drop_expired(now)

    def get_stats(self) -> Dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                'size': len(self._entries),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
