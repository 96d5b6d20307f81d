"""Ordered fallback chains.

Tries a primary operation, then each fallback in turn, returning the first
success. Typical use is switching to another provider when the preferred one
is misconfigured or down::

    reply = await with_fallback(
        lambda: anthropic.complete(prompt),
        [lambda: bedrock.complete(prompt), lambda: local.complete(prompt)],
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from forge.core.errors import ClassifiedError, ErrorContext, ErrorHub, ErrorKind, get_error_hub
from forge.core.logging import get_logger

from .outcome import Operation, capture

T = TypeVar("T")

_logger = get_logger("recovery.fallback")

FALLBACK_KINDS: frozenset[ErrorKind] = frozenset({
    ErrorKind.PROVIDER_NOT_FOUND,
    ErrorKind.PROVIDER_AUTH_FAILED,
    ErrorKind.PROVIDER_UNAVAILABLE,
    ErrorKind.PROVIDER_REQUEST_FAILED,
})

FallbackPredicate = Callable[[ClassifiedError], bool]


def default_should_fallback(error: ClassifiedError) -> bool:
    """Fall back on provider failures another provider could avoid."""
    return error.kind in FALLBACK_KINDS


async def with_fallback(
    primary: Operation[T],
    fallbacks: Sequence[Operation[T]],
    should_fallback: FallbackPredicate | None = None,
    *,
    hub: ErrorHub | None = None,
) -> T:
    """Run ``primary``, then each of ``fallbacks`` in order, until one succeeds.

    Each candidate runs at most once. A failure for which ``should_fallback``
    returns False stops the chain immediately.

    Raises:
        ClassifiedError: The failure that stopped the chain, or the last
            candidate's failure when every candidate failed.
    """
    should_fallback = should_fallback or default_should_fallback
    hub = hub or get_error_hub()
    candidates = [primary, *fallbacks]
    last_index = len(candidates) - 1
    error: ClassifiedError | None = None

    for index, candidate in enumerate(candidates):
        is_primary = index == 0
        context = ErrorContext(
            component="recovery",
            operation="fallback",
            metadata={"index": index, "is_primary": is_primary},
        )
        outcome = await capture(candidate, hub, context)
        if outcome.ok:
            if not is_primary:
                _logger.info("fallback.succeeded", index=index)
            return outcome.unwrap()

        error = outcome.error
        assert error is not None

        if not should_fallback(error):
            raise error

        if index < last_index:
            _logger.info(
                "fallback.next",
                failed=("primary" if is_primary else f"fallback {index}"),
                kind=error.kind.value,
            )

    _logger.warning("fallback.exhausted", candidates=len(candidates))
    assert error is not None
    raise error


__all__ = [
    "FALLBACK_KINDS",
    "FallbackPredicate",
    "default_should_fallback",
    "with_fallback",
]
