"""Failed-attempt lockout for sign-up and sign-in, built on ``limits``.

Counters live in a ``limits`` storage backend. The default is in-process
memory; any ``limits`` storage URI (``redis://...``, ``memcached://...``) can be
configured so several workers share one set of counters.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from ..logging_config import get_logger

logger = get_logger("rate_limit")

DEFAULT_STORAGE_URI = "memory://"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    wait_seconds: int = 0


class RateLimiter:
    """Lock a key out once it has ``max_attempts`` failures inside ``lockout``.

    Only failures are counted; a success clears the key. The lockout window
    opens with the first failure and closes ``lockout`` later. Keys are compared
    case-insensitively with surrounding whitespace ignored, so ``" A@x.io"`` and
    ``"a@x.io"`` share one counter.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 5,
        lockout: timedelta = timedelta(minutes=15),
        storage_uri: str = DEFAULT_STORAGE_URI,
        storage: Optional[Storage] = None,
        namespace: str = "microhabits-auth",
    ) -> None:
        window = int(lockout.total_seconds())
        if max_attempts < 1 or window < 1:
            raise ValueError("max_attempts and lockout must be positive")
        self.max_attempts = max_attempts
        self.lockout = lockout
        self.item = RateLimitItemPerSecond(max_attempts, window, namespace=namespace)
        self.storage = storage if storage is not None else storage_from_string(storage_uri)
        self._window = FixedWindowRateLimiter(self.storage)

    @staticmethod
    def _key(key: str) -> str:
        return (key or "").strip().lower()

    def check(self, key: str) -> RateLimitDecision:
        """Report whether another attempt for ``key`` may go ahead."""

        key = self._key(key)
        if self._window.test(self.item, key):
            return RateLimitDecision(allowed=True)

        stats = self._window.get_window_stats(self.item, key)
        wait = max(1, math.ceil(stats.reset_time - time.time()))
        return RateLimitDecision(allowed=False, wait_seconds=wait)

    def record(self, key: str, success: bool) -> None:
        key = self._key(key)
        if success:
            self._window.clear(self.item, key)
            return
        self._window.hit(self.item, key)

    def reset(self) -> None:
        """Forget every counter in the backing storage."""

        self.storage.reset()
        logger.info("Rate limit counters reset")


__all__ = ["DEFAULT_STORAGE_URI", "RateLimitDecision", "RateLimiter"]
