"""Bridges between the error hub and other processes."""

from forge.bridge.errors import (
    ErrorChannels,
    ErrorNotification,
    ErrorReportBridge,
    Sender,
)

__all__ = [
    "ErrorChannels",
    "ErrorNotification",
    "ErrorReportBridge",
    "Sender",
]
