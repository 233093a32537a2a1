"""In-memory cache of structured chat responses, keyed by normalized message text."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from app.schemas.intelligence import IntelligenceData

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 100


@dataclass
class CacheEntry:
    key: str
    payload: IntelligenceData
    created_at: float


def normalize_key(message: str) -> str:
    return message.lower().strip()


class ResponseCache:
    """
    Bounded, time-boxed response cache.

    - get() ignores entries older than the TTL but does not remove them.
    - put() overwrites in place (last writer wins); when an insert pushes the
      size over capacity, the earliest-inserted key is evicted. Reads never
      affect eviction order.

    Safe to share between concurrent requests.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, message: str) -> Optional[IntelligenceData]:
        key = normalize_key(message)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl_seconds:
                return None
        logger.info("Returning cached response for: %s", message[:50])
        return entry.payload

    def put(self, message: str, payload: IntelligenceData) -> None:
        key = normalize_key(message)
        with self._lock:
            self._entries[key] = CacheEntry(key=key, payload=payload, created_at=self._clock())
            if len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug("Response cache full; evicted %r", oldest)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, message: str) -> bool:
        with self._lock:
            return normalize_key(message) in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
