"""Retry with bounded exponential backoff.

Example usage:
    from forge.core.config import RetryPolicy
    from forge.execution.retry import with_retry

    reply = await with_retry(
        lambda: provider.complete(prompt),
        RetryPolicy(max_attempts=4, initial_delay=0.5),
    )

Delay before attempt ``a + 1`` (0-indexed ``a``)::

    min(initial_delay * backoff_multiplier ** a, max_delay)

With the defaults (1s, x2, cap 30s) the waits are 1s, 2s, 4s, ... 30s.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from forge.core.config import RetryPolicy
from forge.core.errors import ClassifiedError, ErrorContext, ErrorHub, ErrorKind, get_error_hub
from forge.core.logging import get_logger

from .outcome import Operation, capture

T = TypeVar("T")

_logger = get_logger("recovery.retry")

DEFAULT_RETRY_POLICY = RetryPolicy()

RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset({
    ErrorKind.NETWORK_ERROR,
    ErrorKind.TIMEOUT_ERROR,
    ErrorKind.PROVIDER_RATE_LIMITED,
    ErrorKind.PROVIDER_UNAVAILABLE,
    ErrorKind.PROVIDER_REQUEST_FAILED,
})

RetryPredicate = Callable[[ClassifiedError], bool]


def default_should_retry(error: ClassifiedError) -> bool:
    """Retry only recoverable errors of a transient kind."""
    return error.recoverable and error.kind in RETRYABLE_KINDS


def calculate_delay(attempt: int, policy: RetryPolicy = DEFAULT_RETRY_POLICY) -> float:
    """Delay in seconds to wait after the 0-indexed ``attempt`` failed.

    Never exceeds ``policy.max_delay``, however large the exponent grows.
    """
    try:
        delay = policy.initial_delay * policy.backoff_multiplier**attempt
    except OverflowError:
        return policy.max_delay
    return min(delay, policy.max_delay)


async def with_retry(
    operation: Operation[T],
    policy: RetryPolicy | None = None,
    should_retry: RetryPredicate | None = None,
    *,
    hub: ErrorHub | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or retrying stops making sense.

    Args:
        operation: Zero-argument coroutine function to run.
        policy: Backoff settings. Defaults to RetryPolicy().
        should_retry: Decides whether a classified failure is worth another
            attempt. Defaults to default_should_retry().
        hub: Hub receiving every failure. Defaults to the process-wide hub.
        sleep: Coroutine used to wait between attempts.

    Returns:
        The first successful result.

    Raises:
        ClassifiedError: The failure that was not retryable, or the last one
            once ``max_attempts`` is exhausted.
    """
    policy = policy or DEFAULT_RETRY_POLICY
    should_retry = should_retry or default_should_retry
    hub = hub or get_error_hub()

    attempt = 0
    while True:
        attempt += 1
        context = ErrorContext(
            component="recovery",
            operation="retry",
            metadata={"attempt": attempt, "max_attempts": policy.max_attempts},
        )
        outcome = await capture(operation, hub, context)
        if outcome.ok:
            return outcome.unwrap()

        error = outcome.error
        assert error is not None

        if not should_retry(error):
            _logger.debug(
                "retry.not_retryable",
                kind=error.kind.value,
                attempt=attempt,
            )
            raise error

        if attempt >= policy.max_attempts:
            _logger.warning(
                "retry.exhausted",
                kind=error.kind.value,
                max_attempts=policy.max_attempts,
            )
            raise error

        delay = calculate_delay(attempt - 1, policy)
        _logger.info(
            "retry.scheduled",
            attempt=attempt,
            max_attempts=policy.max_attempts,
            delay_seconds=delay,
            kind=error.kind.value,
        )
        await sleep(delay)


__all__ = [
    "DEFAULT_RETRY_POLICY",
    "RETRYABLE_KINDS",
    "RetryPredicate",
    "calculate_delay",
    "default_should_retry",
    "with_retry",
]
