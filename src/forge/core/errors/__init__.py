"""Error classification and notification.

Re-exports the public symbols of the error model.
"""

from forge.core.errors.codes import ErrorDomain, ErrorKind
from forge.core.errors.models import (
    ClassifiedError,
    SerializedError,
    create_error,
    get_error_kind,
    is_classified_error,
    is_recoverable_error,
)
from forge.core.errors.classifier import (
    DEFAULT_RULES,
    UNKNOWN_ERROR_MESSAGE,
    ErrorClassifier,
    InferenceRule,
    normalize,
)
from forge.core.errors.hub import (
    ErrorContext,
    ErrorHub,
    ErrorListener,
    get_error_hub,
    reset_error_hub,
)

__all__ = [
    "ErrorDomain",
    "ErrorKind",
    "ClassifiedError",
    "SerializedError",
    "create_error",
    "get_error_kind",
    "is_classified_error",
    "is_recoverable_error",
    "DEFAULT_RULES",
    "UNKNOWN_ERROR_MESSAGE",
    "ErrorClassifier",
    "InferenceRule",
    "normalize",
    "ErrorContext",
    "ErrorHub",
    "ErrorListener",
    "get_error_hub",
    "reset_error_hub",
]
