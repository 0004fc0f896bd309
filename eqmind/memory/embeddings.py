"""Embedding provider backed by litellm, with caching and rate limiting."""

import threading
import time
from collections import OrderedDict, deque

from loguru import logger

from eqmind.config.schema import EmbeddingConfig
from eqmind.errors import EmbeddingError
from eqmind.memory.base import EmbeddingProvider


class RollingWindowLimiter:
    """
    At most ``limit`` calls in any ``window_seconds`` span.

    A caller over the limit sleeps until the oldest call in the window
    ages out. Thread-safe; state lives in memory only.
    """

    def __init__(self, limit: int, window_seconds: float = 60.0):
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self.call_history: deque[float] = deque()
        self._lock = threading.Lock()

    def _delay(self, now: float) -> float:
        while self.call_history and now - self.call_history[0] >= self.window_seconds:
            self.call_history.popleft()
        if len(self.call_history) < self.limit:
            return 0.0
        return self.window_seconds - (now - self.call_history[0])

    def acquire(self) -> float:
        """Block until a slot is free. Returns the seconds spent waiting."""
        waited = 0.0
        while True:
            with self._lock:
                now = time.monotonic()
                delay = self._delay(now)
                if delay <= 0:
                    self.call_history.append(now)
                    return waited
            logger.debug(f"Embedding rate limit reached, waiting {delay:.2f}s")
            time.sleep(delay)
            waited += delay


class EmbeddingService(EmbeddingProvider):
    """
    Embeds feeling texts and pillar descriptions through ``litellm.embedding``.

    Results are kept in an LRU cache keyed by the stripped text, so repeated
    pillar descriptions and re-indexed feelings never hit the provider twice.
    Provider failures surface as ``EmbeddingError`` and are never cached.
    """

    def __init__(self, config: EmbeddingConfig | None = None):
        self.config = config or EmbeddingConfig()
        self.model = self.config.model
        self.limiter = RollingWindowLimiter(self.config.max_requests_per_minute)
        self._cache: OrderedDict[str, list[float]] = OrderedDict()
        self._cache_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> "EmbeddingService":
        return cls(config)

    @property
    def cached(self) -> int:
        return len(self._cache)

    def embed(self, text: str) -> list[float]:
        key = text.strip()
        if not key:
            raise EmbeddingError("cannot embed empty text")

        with self._cache_lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                return self._cache[key]

        self.limiter.acquire()
        import litellm
        try:
            response = litellm.embedding(model=self.model, input=[key])
            vector = list(response.data[0]["embedding"])
        except Exception as e:
            logger.error(f"Embedding with {self.model} failed: {e}")
            raise EmbeddingError(f"embedding with {self.model} failed: {e}") from e

        if self.config.cache_size:
            with self._cache_lock:
                self._cache[key] = vector
                while len(self._cache) > self.config.cache_size:
                    self._cache.popitem(last=False)
        return vector
