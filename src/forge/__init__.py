"""Forge resilience layer: error classification, notification and recovery."""

__version__ = "0.1.0"

from forge.core.config import CircuitBreakerConfig, ResilienceConfig, RetryPolicy
from forge.core.errors import (
    ClassifiedError,
    ErrorContext,
    ErrorHub,
    ErrorKind,
    get_error_hub,
    normalize,
)
from forge.execution import CircuitBreaker, CircuitState, with_fallback, with_retry

__all__ = [
    "__version__",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "ClassifiedError",
    "ErrorContext",
    "ErrorHub",
    "ErrorKind",
    "ResilienceConfig",
    "RetryPolicy",
    "get_error_hub",
    "normalize",
    "with_fallback",
    "with_retry",
]
