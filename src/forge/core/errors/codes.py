"""Error kinds and domains.

Contains the closed taxonomy used to classify every failure that passes
through the resilience layer.

Error Kind Taxonomy
===================

Kinds are grouped by the subsystem that produced them. The string value of
each kind is a stable identifier: it is what crosses a process boundary and
what remote observers switch on, so values must never be renamed.

**provider** - AI model provider calls

    | Kind | Typical cause |
    |------|---------------|
    | PROVIDER_NOT_FOUND | Provider/model id not registered |
    | PROVIDER_AUTH_FAILED | Bad or missing API key (401) |
    | PROVIDER_RATE_LIMITED | Throttled (429) |
    | PROVIDER_UNAVAILABLE | Service down (503), circuit open |
    | PROVIDER_INVALID_CONFIG | Provider settings rejected |
    | PROVIDER_REQUEST_FAILED | Request failed for another reason |

**task** - agent task lifecycle

    TASK_NOT_FOUND, TASK_FAILED, TASK_CANCELLED, TASK_ALREADY_RUNNING,
    TASK_VALIDATION_FAILED

**git** - repository operations

    GIT_NOT_INITIALIZED, GIT_OPERATION_FAILED, GIT_CONFLICT, GIT_REMOTE_ERROR

**file** - filesystem access

    FILE_NOT_FOUND, FILE_ACCESS_DENIED, FILE_READ_ERROR, FILE_WRITE_ERROR

**storage** - local database

    DATABASE_ERROR, DATABASE_CONSTRAINT_ERROR

**general**

    VALIDATION_ERROR, INTERNAL_ERROR, UNKNOWN_ERROR, NETWORK_ERROR, TIMEOUT_ERROR

Example::

    error = normalize(exc)
    if error.kind.domain == ErrorDomain.PROVIDER:
        ...
"""

from __future__ import annotations

from enum import Enum


class ErrorDomain(str, Enum):
    """Subsystem an error kind belongs to."""

    PROVIDER = "provider"
    TASK = "task"
    GIT = "git"
    FILE = "file"
    STORAGE = "storage"
    GENERAL = "general"


class ErrorKind(str, Enum):
    """Closed enumeration of error kinds.

    Values equal member names so that serialized errors read naturally in
    logs and payloads (``"kind": "PROVIDER_RATE_LIMITED"``).
    """

    # Provider errors
    PROVIDER_NOT_FOUND = "PROVIDER_NOT_FOUND"
    PROVIDER_AUTH_FAILED = "PROVIDER_AUTH_FAILED"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_INVALID_CONFIG = "PROVIDER_INVALID_CONFIG"
    PROVIDER_REQUEST_FAILED = "PROVIDER_REQUEST_FAILED"

    # Task errors
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    TASK_FAILED = "TASK_FAILED"
    TASK_CANCELLED = "TASK_CANCELLED"
    TASK_ALREADY_RUNNING = "TASK_ALREADY_RUNNING"
    TASK_VALIDATION_FAILED = "TASK_VALIDATION_FAILED"

    # Git errors
    GIT_NOT_INITIALIZED = "GIT_NOT_INITIALIZED"
    GIT_OPERATION_FAILED = "GIT_OPERATION_FAILED"
    GIT_CONFLICT = "GIT_CONFLICT"
    GIT_REMOTE_ERROR = "GIT_REMOTE_ERROR"

    # File errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_ACCESS_DENIED = "FILE_ACCESS_DENIED"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"

    # Storage errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_CONSTRAINT_ERROR = "DATABASE_CONSTRAINT_ERROR"

    # General errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"

    @property
    def domain(self) -> ErrorDomain:
        """Get the domain this kind belongs to.

        Returns:
            The ErrorDomain, derived from the kind's name prefix.
        """
        prefix_map = {
            "PROVIDER": ErrorDomain.PROVIDER,
            "TASK": ErrorDomain.TASK,
            "GIT": ErrorDomain.GIT,
            "FILE": ErrorDomain.FILE,
            "DATABASE": ErrorDomain.STORAGE,
        }
        prefix = self.value.split("_", 1)[0]
        return prefix_map.get(prefix, ErrorDomain.GENERAL)

    @classmethod
    def parse(cls, value: ErrorKind | str) -> ErrorKind:
        """Resolve a kind from a member or its string identifier.

        Raises:
            ValueError: If the identifier is not a known kind.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown error kind: {value!r}") from None


__all__ = [
    "ErrorDomain",
    "ErrorKind",
]
