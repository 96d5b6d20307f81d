"""Process-wide error notification hub.

Every failure handled by the resilience layer is normalized and broadcast to
the listeners registered here. Listeners are typically bridges to a UI or
telemetry sink; the hub keeps no other reference to them.

Usage::

    hub = get_error_hub()
    unsubscribe = hub.on_error(lambda error, context: print(error.kind))

    error = await hub.handle(exc, ErrorContext(component="providers", operation="chat"))

    unsubscribe()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from forge.core.logging import get_logger

from .classifier import ErrorClassifier
from .models import ClassifiedError

_logger = get_logger("error_hub")


@dataclass(frozen=True)
class ErrorContext:
    """Where and why an error was handled.

    Attributes:
        component: Subsystem that handled the error (e.g., "recovery").
        operation: Operation within the component (e.g., "retry").
        metadata: Additional data such as attempt counters.
    """

    component: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        """Dotted ``component.operation`` label, skipping missing parts."""
        return ".".join(part for part in (self.component, self.operation) if part)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "operation": self.operation,
            "metadata": dict(self.metadata),
        }


ErrorListener = Callable[[ClassifiedError, ErrorContext | None], Any]


class _Registration:
    """One on_error() call. Compared by identity, so the same callable can be
    registered twice and each unsubscribe removes only its own entry."""

    __slots__ = ("listener",)

    def __init__(self, listener: ErrorListener) -> None:
        self.listener = listener


class ErrorHub:
    """Registry of error listeners plus the normalize-log-notify pipeline.

    Listeners are called in registration order. A listener that raises is
    logged and skipped; it never prevents the remaining listeners from running
    or ``handle()`` from returning.
    """

    def __init__(self, classifier: ErrorClassifier | None = None) -> None:
        self._classifier = classifier or ErrorClassifier()
        self._registrations: list[_Registration] = []

    @property
    def listener_count(self) -> int:
        return len(self._registrations)

    def normalize(self, error: object) -> ClassifiedError:
        return self._classifier.normalize(error)

    async def handle(
        self,
        error: object,
        context: ErrorContext | None = None,
    ) -> ClassifiedError:
        """Normalize, log and broadcast an error.

        Args:
            error: Error of any type.
            context: Where the error was handled.

        Returns:
            The normalized ClassifiedError (the same object if ``error`` was
            already classified).
        """
        classified = self.normalize(error)
        self._log(classified, context)
        await self._notify_listeners(classified, context)
        return classified

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Callable receiving ``(error, context)``. May be sync or async.

        Returns:
            Unsubscribe function. Calling it more than once is harmless.
        """
        registration = _Registration(listener)
        self._registrations.append(registration)

        def unsubscribe() -> None:
            try:
                self._registrations.remove(registration)
            except ValueError:
                # Already removed, or dropped by clear_listeners()
                pass

        return unsubscribe

    def clear_listeners(self) -> None:
        self._registrations.clear()

    async def _notify_listeners(
        self,
        error: ClassifiedError,
        context: ErrorContext | None,
    ) -> None:
        # Snapshot: listeners may unsubscribe themselves while being notified
        for registration in list(self._registrations):
            listener = registration.listener
            try:
                result = listener(error, context)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                _logger.warning(
                    "error_hub.listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    kind=error.kind.value,
                    exc_info=True,
                )

    def _log(self, error: ClassifiedError, context: ErrorContext | None) -> None:
        _logger.error(
            "error.handled",
            kind=error.kind.value,
            error_message=error.message,
            recoverable=error.recoverable,
            details=dict(error.details),
            context=context.label if context else None,
            metadata=dict(context.metadata) if context else None,
            caused_by=repr(error.cause) if error.cause is not None else None,
        )


_hub: ErrorHub | None = None


def get_error_hub() -> ErrorHub:
    """Get the process-wide ErrorHub, creating it with no listeners on first use."""
    global _hub
    if _hub is None:
        _hub = ErrorHub()
    return _hub


def reset_error_hub() -> None:
    """Drop the process-wide hub and its listeners (teardown hook for tests)."""
    global _hub
    if _hub is not None:
        _hub.clear_listeners()
    _hub = None


__all__ = [
    "ErrorContext",
    "ErrorHub",
    "ErrorListener",
    "get_error_hub",
    "reset_error_hub",
]
