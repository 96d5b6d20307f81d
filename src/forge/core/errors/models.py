"""Data models for error classification.

This module provides:
- ClassifiedError: the canonical, immutable error value raised by Forge
- SerializedError: plain-data form of a ClassifiedError for transport
- Helpers for inspecting arbitrary error values (create_error, is_classified_error, ...)
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

from .codes import ErrorKind

_FROZEN_ATTRS = frozenset({"kind", "message", "details", "recoverable", "cause"})


class ClassifiedError(Exception):
    """A failure with its kind, recoverability and context.

    ClassifiedError is immutable once constructed: the classification fields
    cannot be reassigned and ``details`` is a read-only mapping. Use
    ``with_details()`` to derive a new error with extra context.

    Attributes:
        kind: The ErrorKind of this failure.
        message: Human-readable description.
        details: Read-only contextual data (attempt counters, original values...).
        recoverable: Whether the failure is eligible for retry logic to consider.
            It does not mean the failure will be retried.
        cause: The wrapped original exception, if any. Also set as ``__cause__``
            so tracebacks show the chain.
    """

    kind: ErrorKind
    message: str
    details: Mapping[str, Any]
    recoverable: bool
    cause: BaseException | None

    def __init__(
        self,
        kind: ErrorKind | str,
        message: str,
        details: Mapping[str, Any] | None = None,
        recoverable: bool = False,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        super().__setattr__("kind", ErrorKind.parse(kind))
        super().__setattr__("message", message)
        super().__setattr__("details", MappingProxyType(dict(details or {})))
        super().__setattr__("recoverable", bool(recoverable))
        super().__setattr__("cause", cause)
        if cause is not None:
            self.__cause__ = cause
        super().__setattr__("_initialized", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _FROZEN_ATTRS and getattr(self, "_initialized", False):
            raise AttributeError(f"ClassifiedError.{name} is read-only")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name in _FROZEN_ATTRS:
            raise AttributeError(f"ClassifiedError.{name} is read-only")
        super().__delattr__(name)

    def __reduce__(self) -> tuple[Any, ...]:
        return (
            self.__class__,
            (self.kind, self.message, dict(self.details), self.recoverable, self.cause),
        )

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.value}, message={self.message!r}, "
            f"recoverable={self.recoverable})"
        )

    def with_details(self, **extra: Any) -> ClassifiedError:
        """Return a new error with ``extra`` merged into the details.

        The original error is left untouched.
        """
        return ClassifiedError(
            self.kind,
            self.message,
            {**self.details, **extra},
            recoverable=self.recoverable,
            cause=self.cause,
        )

    @property
    def stack(self) -> str | None:
        """Formatted traceback, or None if the error was never raised."""
        if self.__traceback__ is None:
            return None
        return "".join(traceback.format_exception(self))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the plain-data form used across process boundaries.

        Returns:
            Dictionary with name, kind, message, details, recoverable and stack.
            The wrapped cause is not included.
        """
        return self.to_serialized().model_dump(mode="python")

    def to_serialized(self) -> SerializedError:
        return SerializedError(
            kind=self.kind,
            message=self.message,
            details=dict(self.details),
            recoverable=self.recoverable,
            stack=self.stack,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | SerializedError) -> ClassifiedError:
        """Rebuild an error from its plain-data form.

        Raises:
            pydantic.ValidationError: If the payload does not match SerializedError.
        """
        serialized = (
            data if isinstance(data, SerializedError) else SerializedError.model_validate(data)
        )
        return cls(
            serialized.kind,
            serialized.message,
            serialized.details,
            recoverable=serialized.recoverable,
        )


class SerializedError(BaseModel):
    """Plain-data representation of a ClassifiedError."""

    name: str = "ClassifiedError"
    kind: ErrorKind
    message: str
    details: dict[str, Any] | None = Field(default_factory=dict)
    recoverable: bool = False
    stack: str | None = None


def create_error(
    kind: ErrorKind | str,
    message: str,
    *,
    details: Mapping[str, Any] | None = None,
    recoverable: bool = False,
    cause: BaseException | None = None,
) -> ClassifiedError:
    """Create a ClassifiedError with keyword options."""
    return ClassifiedError(kind, message, details, recoverable=recoverable, cause=cause)


def is_classified_error(error: object) -> bool:
    return isinstance(error, ClassifiedError)


def get_error_kind(error: object) -> ErrorKind:
    """Get the kind of any error; non-classified values are UNKNOWN_ERROR."""
    if isinstance(error, ClassifiedError):
        return error.kind
    return ErrorKind.UNKNOWN_ERROR


def is_recoverable_error(error: object) -> bool:
    """Whether ``error`` is a ClassifiedError flagged recoverable."""
    if isinstance(error, ClassifiedError):
        return error.recoverable
    return False


__all__ = [
    "ClassifiedError",
    "SerializedError",
    "create_error",
    "get_error_kind",
    "is_classified_error",
    "is_recoverable_error",
]
