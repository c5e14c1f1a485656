"""
Tests for retry logic, deadlines and circuit breakers
"""

from unittest.mock import Mock

import httpx
import openai
import pytest

from infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerError,
    CircuitBreakerState,
    DeadlineExceededError,
    RetryService,
    exponential_backoff_delay,
)


REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _connection_error():
    return openai.APIConnectionError(request=REQUEST)


class TestExponentialBackoff:
    """Test backoff delay calculation"""

    def test_grows_exponentially(self):
        assert 1.0 <= exponential_backoff_delay(0, 1.0) <= 1.1
        assert 4.0 <= exponential_backoff_delay(2, 1.0) <= 4.4

    def test_capped(self):
        assert exponential_backoff_delay(10, 1.0, max_delay=5.0) <= 5.5


class TestCircuitBreaker:
    """Test circuit breaker state transitions"""

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60, expected_exception=(ValueError,))
        failing = Mock(side_effect=ValueError("down"))

        for _ in range(2):
            with pytest.raises(ValueError):
                breaker.execute(failing)

        assert breaker.state == CircuitBreakerState.OPEN
        with pytest.raises(CircuitBreakerError):
            breaker.execute(failing)
        assert failing.call_count == 2

    def test_untracked_errors_do_not_count(self):
        breaker = CircuitBreaker(failure_threshold=1, expected_exception=(ValueError,))

        with pytest.raises(KeyError):
            breaker.execute(Mock(side_effect=KeyError("x")))

        assert breaker.state == CircuitBreakerState.CLOSED
        assert breaker.failure_count == 0

    def test_half_open_recovery(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=0, expected_exception=(ValueError,))
        with pytest.raises(ValueError):
            breaker.execute(Mock(side_effect=ValueError("down")))

        assert breaker.can_execute() is True
        assert breaker.state == CircuitBreakerState.HALF_OPEN

        assert breaker.execute(lambda: "ok") == "ok"
        assert breaker.state == CircuitBreakerState.CLOSED

    def test_manual_reset(self):
        breaker = CircuitBreaker(failure_threshold=1, expected_exception=(ValueError,))
        with pytest.raises(ValueError):
            breaker.execute(Mock(side_effect=ValueError("down")))

        breaker.reset()

        state = breaker.get_state()
        assert state["state"] == "closed"
        assert state["failure_count"] == 0


class TestRetryService:
    """Test retries with backoff"""

    def setup_method(self):
        self.retry_service = RetryService()

    def test_circuit_breaker_registry(self):
        first = self.retry_service.get_circuit_breaker("generation")
        second = self.retry_service.get_circuit_breaker("generation", failure_threshold=99)

        assert first is second
        assert first.failure_threshold == 5

    def test_retries_transient_errors(self):
        func = Mock(side_effect=[_connection_error(), "ok"])
        on_retry = Mock()

        result = self.retry_service.retry_with_backoff(func, max_retries=2, base_delay=0.0, on_retry=on_retry)

        assert result == "ok"
        assert func.call_count == 2
        on_retry.assert_called_once()

    def test_gives_up_after_max_retries(self):
        func = Mock(side_effect=_connection_error())

        with pytest.raises(openai.APIConnectionError):
            self.retry_service.retry_with_backoff(func, max_retries=2, base_delay=0.0)
        assert func.call_count == 3

    def test_non_retriable_error(self):
        response = httpx.Response(401, request=REQUEST)
        func = Mock(side_effect=openai.AuthenticationError("bad key", response=response, body=None))

        with pytest.raises(openai.AuthenticationError):
            self.retry_service.retry_with_backoff(func, max_retries=3, base_delay=0.0)
        assert func.call_count == 1

    def test_unknown_errors_propagate(self):
        func = Mock(side_effect=ValueError("bug"))

        with pytest.raises(ValueError):
            self.retry_service.retry_with_backoff(func, max_retries=3, base_delay=0.0)
        assert func.call_count == 1

    def test_deadline_stops_retries(self):
        func = Mock(side_effect=_connection_error())

        with pytest.raises(DeadlineExceededError) as exc_info:
            self.retry_service.retry_with_backoff(func, max_retries=3, base_delay=0.0, deadline_seconds=0.0)

        assert func.call_count == 1
        assert isinstance(exc_info.value.__cause__, openai.APIConnectionError)

    def test_retry_with_circuit_breaker(self):
        breaker = self.retry_service.get_circuit_breaker("test", failure_threshold=1)
        func = Mock(side_effect=_connection_error())

        with pytest.raises(openai.APIConnectionError):
            self.retry_service.retry_with_circuit_breaker(func, breaker, max_retries=0)
        with pytest.raises(CircuitBreakerError):
            self.retry_service.retry_with_circuit_breaker(func, breaker, max_retries=2, base_delay=0.0)

        assert func.call_count == 1
