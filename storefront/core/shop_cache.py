from __future__ import annotations

import time
from datetime import timedelta
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class ShopConfigCache(Generic[T]):
    """Time-bounded cache for the active storefront configuration.

    One instance is created at application startup and handed to whoever
    needs it; shop writes call ``invalidate`` once their transaction commits.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entry: tuple[float, T] | None = None

    def get(self) -> Optional[T]:
        if self._entry is None:
            return None
        stored_ts, payload = self._entry
        if (self._clock() - stored_ts) >= self.ttl.total_seconds():
            self._entry = None
            return None
        return payload

    def set(self, payload: T) -> None:
        self._entry = (self._clock(), payload)

    def invalidate(self) -> None:
        self._entry = None
