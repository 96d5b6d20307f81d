"""Recovery strategies: retry with backoff, fallback chains, circuit breakers.

Strategies are independent and compose by wrapping one another's calls::

    breaker = CircuitBreaker(name="anthropic")
    reply = await with_retry(lambda: breaker.execute(call_provider))
"""

from forge.execution.circuit_breaker import (
    OPEN_CIRCUIT_MESSAGE,
    CircuitBreaker,
    CircuitBreakerStats,
    CircuitState,
)
from forge.execution.fallback import FALLBACK_KINDS, default_should_fallback, with_fallback
from forge.execution.outcome import Operation, Outcome, capture
from forge.execution.retry import (
    DEFAULT_RETRY_POLICY,
    RETRYABLE_KINDS,
    calculate_delay,
    default_should_retry,
    with_retry,
)

__all__ = [
    "OPEN_CIRCUIT_MESSAGE",
    "CircuitBreaker",
    "CircuitBreakerStats",
    "CircuitState",
    "FALLBACK_KINDS",
    "default_should_fallback",
    "with_fallback",
    "Operation",
    "Outcome",
    "capture",
    "DEFAULT_RETRY_POLICY",
    "RETRYABLE_KINDS",
    "calculate_delay",
    "default_should_retry",
    "with_retry",
]
