from typing import Any, Callable, Dict, Optional, Tuple
from datetime import datetime, timedelta
from contextlib import contextmanager
import threading

Clock = Callable[[], datetime]

class ExpiringStore:
    """Thread-safe key/value store whose entries lapse after a TTL.

    Expired entries are dropped lazily on access and by purge_expired().
    Read-modify-write sequences spanning several calls must run inside
    locked().
    The clock is injectable so expiry can be driven from tests.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock if clock is not None else datetime.now
        self._entries: Dict[str, Tuple[Any, datetime]] = {}
        self._lock = threading.RLock()

    def now(self) -> datetime:
        return self._clock()

    @contextmanager
    def locked(self):
        """Hold the store lock across several operations"""
        with self._lock:
            yield self

    def set(self, key: str, value: Any, ttl: timedelta):
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def expires_at(self, key: str) -> Optional[datetime]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() >= entry[1]:
                return None
            return entry[1]

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop every lapsed entry; returns how many were removed"""
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._entries)
