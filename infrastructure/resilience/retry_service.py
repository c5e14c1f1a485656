"""
Resilience service for retry logic and circuit breakers around the generation backend.
"""

import time
import random
from typing import Callable, Any, Optional
from datetime import datetime
from enum import Enum
import threading
import openai

from infrastructure.monitoring.logging_service import get_logger

logger = get_logger(__name__)

# Transient errors worth another attempt
RETRIABLE_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,  # includes APITimeoutError
    openai.InternalServerError,
)

# Permanent errors, retrying cannot help
NON_RETRIABLE_ERRORS = (
    openai.AuthenticationError,
    openai.BadRequestError,
    openai.ContentFilterFinishReasonError,
)


def exponential_backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """
    Calculate exponential backoff delay with jitter

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (2 ** attempt), max_delay)

    # Up to 10% jitter
    jitter = random.uniform(0, 0.1 * delay)

    return delay + jitter


class CircuitBreakerState(Enum):
    """Circuit breaker states"""
    CLOSED = "closed"      # Normal operation, requests pass through
    OPEN = "open"          # Circuit is open, requests are blocked
    HALF_OPEN = "half_open"  # Testing if service has recovered


class CircuitBreakerError(Exception):
    """Raised when a call is blocked by an open circuit"""
    pass


class DeadlineExceededError(Exception):
    """Raised when no time is left for another attempt"""
    pass


class CircuitBreaker:
    """
    Circuit breaker guarding one outbound dependency.

    CLOSED lets every call through and counts tracked failures. Reaching
    ``failure_threshold`` consecutive failures moves it to OPEN, where calls
    fail fast with CircuitBreakerError. After ``recovery_timeout`` seconds the
    next call is let through as a probe (HALF_OPEN): success closes the
    circuit, failure opens it again.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: tuple = RETRIABLE_ERRORS,
        name: str = "CircuitBreaker"
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.name = name

        self.state = CircuitBreakerState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[datetime] = None
        # Monotonic time of the last failure, drives the recovery timeout
        self._opened_at: Optional[float] = None

        self._lock = threading.Lock()

        logger.debug(f"Circuit '{name}' ready (threshold={failure_threshold}, recovery={recovery_timeout}s)")

    def _remaining_timeout(self) -> float:
        if self._opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (time.monotonic() - self._opened_at))

    def _transition(self, state: CircuitBreakerState, reason: str):
        self.state = state
        log = logger.warning if state == CircuitBreakerState.OPEN else logger.info
        log(f"Circuit '{self.name}' -> {state.value}: {reason}", extra={
            "circuit": self.name,
            "circuit_state": state.value,
            "failure_count": self.failure_count
        })

    def _on_success(self):
        with self._lock:
            self.failure_count = 0
            self.success_count += 1
            if self.state == CircuitBreakerState.HALF_OPEN:
                self._transition(CircuitBreakerState.CLOSED, "probe call succeeded")

    def _on_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = datetime.now()
            self._opened_at = time.monotonic()

            if self.state == CircuitBreakerState.HALF_OPEN:
                self._transition(CircuitBreakerState.OPEN, "probe call failed")
            elif self.state == CircuitBreakerState.CLOSED and self.failure_count >= self.failure_threshold:
                self._transition(CircuitBreakerState.OPEN, f"{self.failure_count} consecutive failures")

    def can_execute(self) -> bool:
        """Whether a call may go through now; moves OPEN to HALF_OPEN once the timeout elapsed"""
        with self._lock:
            if self.state != CircuitBreakerState.OPEN:
                return True
            if self._remaining_timeout() > 0:
                return False
            self._transition(CircuitBreakerState.HALF_OPEN, "recovery timeout elapsed")
            return True

    def execute(self, func: Callable) -> Any:
        """
        Call ``func`` unless the circuit is open

        Raises:
            CircuitBreakerError: If the circuit is open
            Whatever ``func`` raises; only ``expected_exception`` counts as a failure
        """
        if not self.can_execute():
            raise CircuitBreakerError(
                f"Circuit breaker '{self.name}' is OPEN. "
                f"Retry in {self._remaining_timeout():.0f}s."
            )

        try:
            result = func()
        except self.expected_exception:
            self._on_failure()
            raise
        except Exception as e:
            logger.debug(f"Circuit '{self.name}' ignoring untracked {e.__class__.__name__}")
            raise

        self._on_success()
        return result

    def get_state(self) -> dict:
        """Snapshot for monitoring"""
        with self._lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "failure_count": self.failure_count,
                "success_count": self.success_count,
                "failure_threshold": self.failure_threshold,
                "remaining_timeout": self._remaining_timeout() if self.state == CircuitBreakerState.OPEN else 0,
                "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None
            }

    def reset(self):
        """Force the circuit back to CLOSED"""
        with self._lock:
            self.failure_count = 0
            self.last_failure_time = None
            self._opened_at = None
            self._transition(CircuitBreakerState.CLOSED, "manual reset")


class RetryService:
    """
    Retry logic and circuit breakers for outbound calls.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self._circuit_breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get_circuit_breaker(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: tuple = RETRIABLE_ERRORS
    ) -> CircuitBreaker:
        """Get a circuit breaker by name, creating it on first use"""
        with self._lock:
            if name not in self._circuit_breakers:
                self._circuit_breakers[name] = CircuitBreaker(
                    failure_threshold=failure_threshold,
                    recovery_timeout=recovery_timeout,
                    expected_exception=expected_exception,
                    name=name
                )
            return self._circuit_breakers[name]

    def retry_with_backoff(
        self,
        func: Callable,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        deadline_seconds: Optional[float] = None,
        on_retry: Optional[Callable[[int, Exception], None]] = None
    ) -> Any:
        """
        Call ``func``, retrying transient OpenAI errors with exponential backoff

        Args:
            func: Zero-argument callable
            max_retries: Retries after the first attempt
            base_delay: Delay before the first retry, doubled each time
            max_delay: Upper bound for a single delay
            deadline_seconds: Total time budget; a retry that would start past it is not made
            on_retry: Called with (retry_number, exception) before sleeping

        Raises:
            DeadlineExceededError: The budget ran out, chained from the last error
            The last transient error once retries are exhausted; anything else immediately
        """
        started = time.monotonic()
        attempt = 0

        while True:
            try:
                result = func()
            except NON_RETRIABLE_ERRORS as e:
                self.logger.warning(f"Permanent error, not retrying: {e.__class__.__name__}: {e}")
                raise
            except RETRIABLE_ERRORS as e:
                if attempt >= max_retries:
                    self.logger.error(f"Giving up after {attempt + 1} attempts: {e.__class__.__name__}: {e}")
                    raise

                delay = exponential_backoff_delay(attempt, base_delay, max_delay)
                elapsed = time.monotonic() - started
                if deadline_seconds is not None and elapsed + delay >= deadline_seconds:
                    self.logger.warning(
                        f"No time left to retry {e.__class__.__name__}",
                        extra={"elapsed_seconds": elapsed, "deadline_seconds": deadline_seconds}
                    )
                    raise DeadlineExceededError(
                        f"Deadline of {deadline_seconds:.2f}s reached after {attempt + 1} attempts"
                    ) from e

                attempt += 1
                self.logger.warning(
                    f"Retry {attempt}/{max_retries} in {delay:.2f}s after {e.__class__.__name__}",
                    extra={"retry_attempt": attempt, "retry_delay": delay}
                )
                if on_retry:
                    on_retry(attempt, e)
                time.sleep(delay)
                continue

            if attempt:
                self.logger.info(f"Succeeded after {attempt} retries")
            return result

    def retry_with_circuit_breaker(
        self,
        func: Callable,
        circuit_breaker: CircuitBreaker,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        deadline_seconds: Optional[float] = None,
        on_retry: Optional[Callable[[int, Exception], None]] = None
    ) -> Any:
        """
        Same as ``retry_with_backoff`` with every attempt going through ``circuit_breaker``.
        An open circuit raises CircuitBreakerError, which is never retried.
        """
        return self.retry_with_backoff(
            lambda: circuit_breaker.execute(func),
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
            deadline_seconds=deadline_seconds,
            on_retry=on_retry
        )


# Global retry service instance
_retry_service: Optional[RetryService] = None


def get_retry_service() -> RetryService:
    """Get the global retry service instance"""
    global _retry_service
    if _retry_service is None:
        _retry_service = RetryService()
    return _retry_service
