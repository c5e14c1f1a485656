"""
Resilience infrastructure - handles retry logic, circuit breakers, and fault tolerance.
"""

from .retry_service import (
    RetryService,
    CircuitBreaker,
    CircuitBreakerState,
    CircuitBreakerError,
    DeadlineExceededError,
    RETRIABLE_ERRORS,
    NON_RETRIABLE_ERRORS,
    get_retry_service,
    exponential_backoff_delay
)

__all__ = [
    'RetryService',
    'CircuitBreaker',
    'CircuitBreakerState',
    'CircuitBreakerError',
    'DeadlineExceededError',
    'RETRIABLE_ERRORS',
    'NON_RETRIABLE_ERRORS',
    'get_retry_service',
    'exponential_backoff_delay'
]
