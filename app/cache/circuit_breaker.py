"""Circuit breaker for the shared Redis connection."""
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker guarding the remote cache.

    CLOSED: calls go through, consecutive failures are counted.
    OPEN: calls are refused until the reset timeout elapses.
    HALF_OPEN: a single probe is allowed; success closes the circuit,
    failure reopens it with a doubled (capped) reset timeout.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 30.0,
        max_reset_timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.failure_threshold = max(1, failure_threshold)
        self.base_reset_timeout = reset_timeout
        self.max_reset_timeout = max(reset_timeout, max_reset_timeout)
        self._clock = clock
        self.state = BreakerState.CLOSED
        self.consecutive_failures = 0
        self.current_reset_timeout = reset_timeout
        self.opened_at = 0.0

    def allow_request(self) -> bool:
        """Можно ли обращаться к Redis прямо сейчас."""
        if self.state == BreakerState.CLOSED:
            return True
        if self.state == BreakerState.HALF_OPEN:
            # probe already in flight
            return False
        if self._clock() - self.opened_at >= self.current_reset_timeout:
            self.state = BreakerState.HALF_OPEN
            logger.info("Cache circuit breaker half-open, probing Redis")
            return True
        return False

    def record_success(self) -> None:
        if self.state != BreakerState.CLOSED:
            logger.info("Cache circuit breaker closed")
        self.state = BreakerState.CLOSED
        self.consecutive_failures = 0
        self.current_reset_timeout = self.base_reset_timeout

    def record_failure(self) -> None:
        self.consecutive_failures += 1
        if self.state == BreakerState.HALF_OPEN:
            self.current_reset_timeout = min(
                self.current_reset_timeout * 2, self.max_reset_timeout
            )
            self._open()
        elif self.state == BreakerState.CLOSED and self.consecutive_failures >= self.failure_threshold:
            self._open()

    def reset(self) -> None:
        self.state = BreakerState.CLOSED
        self.consecutive_failures = 0
        self.current_reset_timeout = self.base_reset_timeout
        self.opened_at = 0.0

    def _open(self) -> None:
        self.state = BreakerState.OPEN
        self.opened_at = self._clock()
        logger.warning(
            "Cache circuit breaker opened after %s failures, retry in %.1fs",
            self.consecutive_failures,
            self.current_reset_timeout,
        )

    def get_status(self) -> Dict[str, Any]:
        retry_in = 0.0
        if self.state == BreakerState.OPEN:
            retry_in = max(0.0, self.opened_at + self.current_reset_timeout - self._clock())
        return {
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "failure_threshold": self.failure_threshold,
            "reset_timeout": self.current_reset_timeout,
            "retry_in": retry_in,
        }
