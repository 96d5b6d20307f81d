"""Error reporting bridge between the hub and remote observers.

Connects the process-wide ErrorHub to whatever transport carries errors to
another process (an IPC channel, a websocket, a queue). The bridge only
deals in plain dicts; the transport decides how to encode and deliver them.

Inbound: a remote process reports a serialized error, which is rebuilt and
handled locally. Outbound: each subscriber receives a notification envelope
for every error the hub handles.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any, Final

from pydantic import BaseModel, ValidationError

from forge.core.errors import (
    ClassifiedError,
    ErrorContext,
    ErrorHub,
    ErrorKind,
    SerializedError,
    get_error_hub,
)
from forge.core.logging import get_logger

_logger = get_logger("bridge.errors")


class ErrorChannels:
    """Channel names used by the surrounding application."""

    REPORT: Final = "error:report"
    SUBSCRIBE: Final = "error:subscribe"
    UNSUBSCRIBE: Final = "error:unsubscribe"
    NOTIFICATION: Final = "error:notification"


class ErrorNotification(BaseModel):
    """Envelope pushed to subscribers for every handled error."""

    channel: str = ErrorChannels.NOTIFICATION
    error: SerializedError
    context: dict[str, Any] | None = None


Sender = Callable[[dict[str, Any]], Any]


class ErrorReportBridge:
    """Routes errors between the hub and remote subscribers.

    Usage::

        bridge = ErrorReportBridge()
        bridge.subscribe(window_id, lambda payload: channel.send(payload))
        await bridge.report({"kind": "TASK_FAILED", "message": "boom"})
        bridge.cleanup()
    """

    def __init__(self, hub: ErrorHub | None = None) -> None:
        self._hub = hub or get_error_hub()
        self._subscriptions: dict[str, Callable[[], None]] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def is_subscribed(self, subscriber_id: str) -> bool:
        return subscriber_id in self._subscriptions

    async def report(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Handle an error reported by a remote process.

        Args:
            payload: Serialized error ({name, kind, message, details, recoverable, stack}).

        Returns:
            ``{"success": True}`` once the error has been handled.

        Raises:
            ClassifiedError: VALIDATION_ERROR if the payload is malformed.
        """
        try:
            error = ClassifiedError.from_dict(payload)
        except ValidationError as exc:
            raise ClassifiedError(
                ErrorKind.VALIDATION_ERROR,
                "Invalid error report payload",
                {"errors": exc.errors(include_url=False)},
                cause=exc,
            ) from exc

        await self._hub.handle(
            error,
            ErrorContext(component="renderer", operation="report"),
        )
        return {"success": True}

    def subscribe(self, subscriber_id: str, send: Sender) -> dict[str, Any]:
        """Forward every handled error to ``send``.

        Subscribing again with the same id replaces the previous subscription.
        If ``send`` raises, the subscriber is assumed gone and is dropped; a
        newer subscription under the same id is left alone.
        """
        self.unsubscribe(subscriber_id)

        async def forward(error: ClassifiedError, context: ErrorContext | None) -> None:
            notification = ErrorNotification(
                error=error.to_serialized(),
                context=context.to_dict() if context else None,
            )
            try:
                result = send(notification.model_dump())
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                _logger.warning(
                    "bridge.send_failed",
                    subscriber_id=subscriber_id,
                    exc_info=True,
                )
                self._drop(subscriber_id, remove)

        remove = self._hub.on_error(forward)
        self._subscriptions[subscriber_id] = remove
        _logger.debug("bridge.subscribed", subscriber_id=subscriber_id)
        return {"success": True}

    def unsubscribe(self, subscriber_id: str) -> dict[str, Any]:
        unsubscribe = self._subscriptions.pop(subscriber_id, None)
        if unsubscribe is not None:
            unsubscribe()
            _logger.debug("bridge.unsubscribed", subscriber_id=subscriber_id)
        return {"success": True}

    def _drop(self, subscriber_id: str, remove: Callable[[], None]) -> None:
        remove()
        if self._subscriptions.get(subscriber_id) is remove:
            del self._subscriptions[subscriber_id]
            _logger.debug("bridge.unsubscribed", subscriber_id=subscriber_id)

    def cleanup(self) -> None:
        """Drop every subscription."""
        for unsubscribe in self._subscriptions.values():
            unsubscribe()
        self._subscriptions.clear()


__all__ = [
    "ErrorChannels",
    "ErrorNotification",
    "ErrorReportBridge",
    "Sender",
]
