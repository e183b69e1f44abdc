from typing import List, Optional
from datetime import timedelta
import math

from pydantic import BaseModel

from src.config import settings
from src.logger_config import logger
from src.auth.expiring_store import ExpiringStore

class RateLimitDecision(BaseModel):
    allowed: bool
    remaining: int = 0
    retry_after_seconds: int = 0

    @property
    def retry_after_minutes(self) -> int:
        return math.ceil(self.retry_after_seconds / 60)

class RateLimiter:
    """Sliding-window limiter: at most max_requests hits per key within window"""

    def __init__(
        self,
        store: Optional[ExpiringStore] = None,
        max_requests: Optional[int] = None,
        window_minutes: Optional[int] = None
    ):
        self.store = store if store is not None else ExpiringStore()
        self.max_requests = max_requests if max_requests is not None else settings.RATE_LIMIT_MAX_REQUESTS
        self.window = timedelta(
            minutes=window_minutes if window_minutes is not None else settings.RATE_LIMIT_WINDOW_MINUTES
        )

    @staticmethod
    def _key(key: str) -> str:
        return f"rate:{key}"

    def hit(self, key: str) -> RateLimitDecision:
        """Record a request for key unless it is over the limit"""
        with self.store.locked():
            return self._hit_locked(key)

    def _hit_locked(self, key: str) -> RateLimitDecision:
        now = self.store.now()
        store_key = self._key(key)
        hits: List = [t for t in (self.store.get(store_key) or []) if now - t < self.window]

        if len(hits) >= self.max_requests:
            retry_after = hits[0] + self.window - now
            logger.warning("Rate limit exceeded for {}", key)
            return RateLimitDecision(
                allowed=False,
                retry_after_seconds=max(int(math.ceil(retry_after.total_seconds())), 1)
            )

        hits.append(now)
        self.store.set(store_key, hits, self.window)
        return RateLimitDecision(allowed=True, remaining=self.max_requests - len(hits))

    def reset(self, key: str):
        self.store.delete(self._key(key))
