"""Core error model, configuration and logging."""

from forge.core.config import CircuitBreakerConfig, LogConfig, ResilienceConfig, RetryPolicy
from forge.core.errors import (
    ClassifiedError,
    ErrorContext,
    ErrorHub,
    ErrorKind,
    get_error_hub,
    normalize,
)

__all__ = [
    "CircuitBreakerConfig",
    "ClassifiedError",
    "ErrorContext",
    "ErrorHub",
    "ErrorKind",
    "LogConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "get_error_hub",
    "normalize",
]
