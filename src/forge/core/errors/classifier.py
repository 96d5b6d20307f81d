"""ErrorClassifier implementation for normalizing arbitrary failures.

Turns whatever a failing call produced (a ClassifiedError, a native exception,
a string, an object carrying a ``message``, or nothing useful at all) into a
ClassifiedError. Native exceptions are classified by an ordered list of
pattern rules; the first rule that matches wins.
"""

from __future__ import annotations

import errno
import re
from collections.abc import Mapping
from dataclasses import dataclass

from .codes import ErrorKind
from .models import ClassifiedError

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


@dataclass(frozen=True)
class InferenceRule:
    """Maps a set of message patterns to an ErrorKind.

    Attributes:
        kind: Kind assigned when any pattern matches.
        patterns: Case-insensitive regular expressions.
        recoverable: Recoverability assigned alongside the kind.
        match_type_name: Also match the patterns against the exception class
            name, for exceptions that are raised without a message.
    """

    kind: ErrorKind
    patterns: tuple[str, ...]
    recoverable: bool = False
    match_type_name: bool = False

    def matches(self, text: str) -> bool:
        return any(re.search(pattern, text, re.IGNORECASE) for pattern in self.patterns)

    def matches_error(self, text: str, type_name: str) -> bool:
        return self.matches(text) or (self.match_type_name and self.matches(type_name))


# =============================================================================
# Default inference rules, in precedence order.
# The first six are the fixed precedence for filesystem, timeout, network and
# provider status failures; the rest refine what would otherwise be INTERNAL_ERROR.
# =============================================================================

DEFAULT_RULES: tuple[InferenceRule, ...] = (
    InferenceRule(
        ErrorKind.FILE_NOT_FOUND,
        (r"enoent", r"not found", r"no such file"),
    ),
    InferenceRule(
        ErrorKind.FILE_ACCESS_DENIED,
        (r"eacces", r"permission denied"),
    ),
    InferenceRule(
        ErrorKind.TIMEOUT_ERROR,
        (r"timeout", r"timed out", r"etimedout"),
        recoverable=True,
        match_type_name=True,
    ),
    InferenceRule(
        ErrorKind.NETWORK_ERROR,
        (r"network", r"connection", r"econnrefused", r"econnreset", r"enotfound"),
        recoverable=True,
    ),
    InferenceRule(
        ErrorKind.PROVIDER_RATE_LIMITED,
        (r"rate.?limit", r"429"),
        recoverable=True,
    ),
    InferenceRule(
        ErrorKind.PROVIDER_AUTH_FAILED,
        (r"unauthorized", r"401"),
    ),
    InferenceRule(
        ErrorKind.PROVIDER_UNAVAILABLE,
        (r"503", r"unavailable"),
        recoverable=True,
    ),
    InferenceRule(
        ErrorKind.GIT_NOT_INITIALIZED,
        (r"not a git repository",),
    ),
    InferenceRule(
        ErrorKind.GIT_OPERATION_FAILED,
        (r"\bgit\b",),
    ),
    InferenceRule(
        ErrorKind.DATABASE_CONSTRAINT_ERROR,
        (r"constraint",),
    ),
    InferenceRule(
        ErrorKind.DATABASE_ERROR,
        (r"sqlite", r"database"),
    ),
)


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return ""


def _match_text(error: BaseException) -> str:
    """Build the text the inference rules are matched against.

    Combines the message and the symbolic errno name (``ENOENT`` for a
    FileNotFoundError whose message only says "No such file or directory").
    The class name is not included; see ``InferenceRule.match_type_name``.
    """
    parts = [_safe_str(error)]
    try:
        code = getattr(error, "errno", None)
    except Exception:
        code = None
    if isinstance(code, int) and code in errno.errorcode:
        parts.append(errno.errorcode[code])
    return " ".join(parts)


class ErrorClassifier:
    """Normalizes arbitrary failure values into ClassifiedError.

    The classifier checks a fixed, ordered set of input shapes:

    1. ClassifiedError: returned as-is (normalization is idempotent)
    2. Exception instance: kind inferred from ``rules``
    3. str: UNKNOWN_ERROR with the string as message
    4. Mapping with a "message" key, or object with a ``message`` attribute:
       UNKNOWN_ERROR with that message
    5. Anything else: UNKNOWN_ERROR with a fixed message

    Example:
        classifier = ErrorClassifier()
        error = classifier.normalize(TimeoutError("read timed out"))
        assert error.kind == ErrorKind.TIMEOUT_ERROR
        assert error.recoverable
    """

    def __init__(self, rules: tuple[InferenceRule, ...] | None = None) -> None:
        self._rules = DEFAULT_RULES if rules is None else tuple(rules)

    @property
    def rules(self) -> tuple[InferenceRule, ...]:
        return self._rules

    def normalize(self, error: object) -> ClassifiedError:
        """Convert any failure value into a ClassifiedError. Never raises."""
        if isinstance(error, ClassifiedError):
            return error

        if isinstance(error, BaseException):
            return self._normalize_exception(error)

        if isinstance(error, str):
            return ClassifiedError(ErrorKind.UNKNOWN_ERROR, error)

        message = self._extract_message(error)
        if message is not None:
            return ClassifiedError(
                ErrorKind.UNKNOWN_ERROR,
                message,
                {"original_error": error},
            )

        return ClassifiedError(
            ErrorKind.UNKNOWN_ERROR,
            UNKNOWN_ERROR_MESSAGE,
            {"original_error": error},
        )

    def infer_kind(self, error: BaseException) -> tuple[ErrorKind, bool]:
        """Infer kind and recoverability for a native exception.

        Returns:
            Tuple of (kind, recoverable). INTERNAL_ERROR / False if no rule matches.
        """
        text = _match_text(error)
        type_name = type(error).__name__
        for rule in self._rules:
            if rule.matches_error(text, type_name):
                return rule.kind, rule.recoverable
        return ErrorKind.INTERNAL_ERROR, False

    def _normalize_exception(self, error: BaseException) -> ClassifiedError:
        kind, recoverable = self.infer_kind(error)
        return ClassifiedError(
            kind,
            _safe_str(error),
            {"error_type": type(error).__name__},
            recoverable=recoverable,
            cause=error,
        )

    @staticmethod
    def _extract_message(error: object) -> str | None:
        """Message carried by a mapping or object, or None if absent or unreadable."""
        if error is None:
            return None
        try:
            if isinstance(error, Mapping):
                if "message" not in error:
                    return None
                return str(error["message"])
            message = getattr(error, "message", None)
            if message is None:
                return None
            return str(message)
        except Exception:
            return None


_default_classifier = ErrorClassifier()


def normalize(error: object) -> ClassifiedError:
    """Normalize ``error`` with the default classifier.

    See ErrorClassifier.normalize().
    """
    return _default_classifier.normalize(error)


__all__ = [
    "DEFAULT_RULES",
    "ErrorClassifier",
    "InferenceRule",
    "UNKNOWN_ERROR_MESSAGE",
    "normalize",
]
