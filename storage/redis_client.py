"""Redis client with connection pooling, retry with backoff, and circuit breaker."""

import time
from typing import Any, Callable

import redis

from config import Settings, configure_logging


class CircuitBreaker:
    """
    Three-state circuit breaker: CLOSED → OPEN → HALF_OPEN.

    CLOSED: Normal operation. Track consecutive failures.
    OPEN:   After failure_threshold failures, reject all calls immediately.
    HALF_OPEN: After recovery_timeout, allow one test call through.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self.state = "closed"
        self.failure_count = 0
        self.last_failure_time = 0.0

    def can_execute(self) -> bool:
        if self.state == "open":
            if self._clock() - self.last_failure_time > self.recovery_timeout:
                self.state = "half_open"
                return True
            return False
        return True

    def record_success(self):
        self.failure_count = 0
        self.state = "closed"

    def record_failure(self):
        self.failure_count += 1
        self.last_failure_time = self._clock()
        if self.state == "half_open" or self.failure_count >= self.failure_threshold:
            self.state = "open"


class CircuitOpenError(Exception):
    pass


class RedisClient:
    """
    Pooled Redis access for the series reader and the result writer.

    Only connection and timeout errors are retried; anything else (a wrong
    key type, a script error) surfaces on the first attempt.
    """

    def __init__(self, url: str, pool_size: int = 5, log_level: str = "INFO"):
        self.log = configure_logging("redis-client", log_level)
        self._pool = redis.ConnectionPool.from_url(
            url,
            max_connections=pool_size,
            decode_responses=True,
        )
        self._circuit = CircuitBreaker(failure_threshold=5, recovery_timeout=30)
        self.log.info("redis_pool_created", url=url, pool_size=pool_size)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisClient":
        return cls(settings.redis_url, settings.redis_pool_size, settings.log_level)

    def get_client(self) -> redis.Redis:
        return redis.Redis(connection_pool=self._pool)

    def execute_with_retry(
        self, func: Callable[[redis.Redis], Any], max_retries: int = 3
    ) -> Any:
        """Execute a Redis operation with circuit breaker and retry logic."""
        if not self._circuit.can_execute():
            raise CircuitOpenError("Redis circuit breaker is OPEN, failing fast")

        last_error = None
        for attempt in range(max_retries):
            try:
                result = func(self.get_client())
                self._circuit.record_success()
                return result
            except (redis.ConnectionError, redis.TimeoutError) as e:
                last_error = e
                self._circuit.record_failure()
                if attempt < max_retries - 1:
                    backoff = 0.1 * (2 ** attempt)
                    self.log.warning(
                        "redis_retry",
                        attempt=attempt + 1,
                        backoff=backoff,
                        error=str(e),
                    )
                    time.sleep(backoff)

        raise last_error  # type: ignore[misc]

    def close(self):
        self._pool.disconnect()
        self.log.info("redis_pool_closed")

    @property
    def circuit_state(self) -> str:
        return self._circuit.state
