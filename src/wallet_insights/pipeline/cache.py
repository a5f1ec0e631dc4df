"""
Time-expiring single-value cache shared by the symbol resolver and the price
oracle.

Values are replaced whole on refresh and never mutated in place, so
concurrent readers at worst observe a stale value. A failed refresh keeps
serving the last good value.
"""

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

from wallet_insights.services.errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Holds one value together with the time it was last refreshed."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic, name: str = "cache"):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.name = name
        self._value: Optional[T] = None
        self._refreshed_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self._refreshed_at is None:
            return False
        return self.clock() - self._refreshed_at < self.ttl_seconds

    def peek(self) -> Optional[T]:
        """Return the stored value regardless of age."""
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._refreshed_at = self.clock()

    def invalidate(self) -> None:
        self._refreshed_at = None

    def get_or_refresh(self, loader: Callable[[], T]) -> Optional[T]:
        """Return the cached value, calling loader first when it has expired.

        When the loader fails with a ProviderError the previous value (which
        may be None) is returned instead.
        """
        if self.is_fresh():
            return self._value

        try:
            value = loader()
        except ProviderError as e:
            logger.warning(f"Refreshing {self.name} failed, serving last good value: {e}")
            return self._value

        self.set(value)
        return value
