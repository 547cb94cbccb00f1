import copy
import logging
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, NamedTuple, Optional, Union

from .exceptions import CacheMiss
from .tasks import PeriodicTask

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 5 * 60


def latest_rates_key(base_currency: str) -> str:
    return f"latest_rates_{base_currency}"


def rate_key(source_currency: str, destination_currency: str, date: Optional[str] = None) -> str:
    return f"rate_{source_currency}_{destination_currency}_{date or 'latest'}"


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float


class CacheStore:
    """
    In-memory key/value store with per-entry expiry.

    Values are deep-copied on the way in and on the way out, so callers can
    never mutate cached state through a reference they hold. Expired entries
    are dropped lazily by ``get`` and eagerly by ``sweep``, which the sweeper
    thread runs every five minutes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._items: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[PeriodicTask] = None

    def set(self, key: str, value: Any, ttl: Union[float, timedelta]) -> None:
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        entry = CacheEntry(copy.deepcopy(value), self._clock() + ttl)
        with self._lock:
            self._items[key] = entry

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                raise CacheMiss(key)
            if self._clock() > entry.expires_at:
                del self._items[key]
                raise CacheMiss(key)
            value = entry.value
        return copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._items = {}

    def sweep(self) -> int:
        """Evict every expired entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._items.items() if now > entry.expires_at]
            for key in expired:
                del self._items[key]
        if expired:
            logger.debug("Cache sweep evicted %d entries", len(expired))
        return len(expired)

    def start_sweeper(self, interval: float = SWEEP_INTERVAL_SECONDS) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._sweeper = PeriodicTask("rates-cache-sweeper", self.sweep, interval)
        self._sweeper.start()

    def stop_sweeper(self) -> None:
        if self._sweeper is not None:
            self._sweeper.stop()
            self._sweeper = None

    # Raw inspection: expired entries still count until evicted.
    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
