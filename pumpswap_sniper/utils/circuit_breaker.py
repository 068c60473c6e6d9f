"""
Circuit breaker for remote services.

After ``failure_threshold`` consecutive failures the breaker opens and
callers are refused until ``recovery_timeout`` has passed. The next call is
then let through as a probe: success closes the breaker, failure reopens it.
"""

import logging
import time
from enum import Enum

logger = logging.getLogger(__name__)


class BreakerState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreaker:
    """
    Usage:
        breaker = CircuitBreaker(name="RPC", failure_threshold=5)

        if not breaker.can_execute():
            raise NetworkException("RPC circuit breaker open")
        try:
            result = await rpc_call()
        except Exception:
            breaker.record_failure()
            raise
        breaker.record_success()
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        name: str = "default",
        clock=time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self._clock = clock

        self.state = BreakerState.CLOSED
        self.failures = 0
        self._opened_at = 0.0

    def can_execute(self) -> bool:
        if self.state == BreakerState.OPEN:
            if self._clock() - self._opened_at < self.recovery_timeout:
                return False
            self.state = BreakerState.HALF_OPEN
            logger.info("Circuit breaker '%s' probing after %.0fs", self.name, self.recovery_timeout)
        return True

    def record_success(self) -> None:
        if self.state != BreakerState.CLOSED:
            logger.info("Circuit breaker '%s' closed, service recovered", self.name)
        self.state = BreakerState.CLOSED
        self.failures = 0

    def record_failure(self) -> None:
        self.failures += 1
        should_open = self.state == BreakerState.HALF_OPEN or self.failures >= self.failure_threshold
        if should_open:
            if self.state != BreakerState.OPEN:
                logger.warning(
                    "Circuit breaker '%s' opened (%d consecutive failures)", self.name, self.failures
                )
            self.state = BreakerState.OPEN
            self._opened_at = self._clock()

    def get_status(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failures": self.failures,
            "threshold": self.failure_threshold,
        }
