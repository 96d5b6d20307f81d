"""Explicit success/failure values for recovery loops.

Recovery strategies run each attempt through ``capture()`` and branch on the
returned Outcome instead of using exceptions as their control flow.
``asyncio.CancelledError`` is not an ``Exception`` and is never captured, so
cancelling a task inside a strategy stops it without another attempt.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from forge.core.errors import ClassifiedError, ErrorContext, ErrorHub

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a single attempt.

    Attributes:
        value: The operation's return value (None on failure).
        error: The classified failure, or None on success.
    """

    value: T | None = None
    error: ClassifiedError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the classified error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def capture(
    operation: Operation[T],
    hub: ErrorHub,
    context: ErrorContext,
) -> Outcome[T]:
    """Run ``operation`` once and capture its outcome.

    Failures are normalized and broadcast through ``hub.handle()`` before
    being returned.
    """
    try:
        value = await operation()
    except Exception as exc:
        error = await hub.handle(exc, context)
        return Outcome(error=error)
    return Outcome(value=value)


__all__ = [
    "Operation",
    "Outcome",
    "capture",
]
