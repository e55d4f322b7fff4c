import logging
import threading
import time
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Holds the result of ``loader`` for ``ttl_seconds``.

    Created once at process start and handed to whoever needs it; ``close``
    drops the cached value at shutdown. Reads after expiry reload.
    """

    def __init__(self, loader: Callable[[], T], ttl_seconds: float,
                 clock: Callable[[], float] = time.monotonic):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._loaded_at: Optional[float] = None
        self._closed = False

    def get(self) -> T:
        with self._lock:
            if self._closed:
                raise RuntimeError("cache is closed")
            now = self._clock()
            if self._loaded_at is None or now - self._loaded_at >= self._ttl:
                logger.debug("Cache miss, reloading")
                self._value = self._loader()
                self._loaded_at = now
            return self._value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._loaded_at = None

    def close(self) -> None:
        with self._lock:
            self._value = None
            self._loaded_at = None
            self._closed = True
