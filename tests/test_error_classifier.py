"""Tests for forge.core.errors.classifier module."""

import errno

import pytest

from forge.core.errors import (
    DEFAULT_RULES,
    UNKNOWN_ERROR_MESSAGE,
    ClassifiedError,
    ErrorClassifier,
    ErrorKind,
    InferenceRule,
    normalize,
)


class TestNormalizeShapes:
    """Tests for normalize() on each supported input shape."""

    def test_classified_error_returned_unchanged(self):
        """Test that normalization is idempotent for classified errors."""
        error = ClassifiedError(ErrorKind.TASK_FAILED, "failed", {"task": 1})
        assert normalize(error) is error

    def test_normalize_is_idempotent(self):
        once = normalize(TimeoutError("read timed out"))
        assert normalize(once) is once

    def test_exception_wrapped_with_cause(self):
        original = RuntimeError("something broke")
        error = normalize(original)

        assert error.kind == ErrorKind.INTERNAL_ERROR
        assert error.message == "something broke"
        assert error.details == {"error_type": "RuntimeError"}
        assert error.recoverable is False
        assert error.cause is original

    def test_string_input(self):
        error = normalize("plain failure text")
        assert error.kind == ErrorKind.UNKNOWN_ERROR
        assert error.message == "plain failure text"
        assert error.recoverable is False

    def test_string_is_not_pattern_matched(self):
        """Test that bare strings are not run through the inference rules."""
        error = normalize("connection timed out")
        assert error.kind == ErrorKind.UNKNOWN_ERROR

    def test_mapping_with_message(self):
        payload = {"message": "remote failure", "code": 12}
        error = normalize(payload)
        assert error.kind == ErrorKind.UNKNOWN_ERROR
        assert error.message == "remote failure"
        assert error.details["original_error"] == payload

    def test_object_with_message_attribute(self):
        class Failure:
            message = "object failure"

        failure = Failure()
        error = normalize(failure)
        assert error.kind == ErrorKind.UNKNOWN_ERROR
        assert error.message == "object failure"
        assert error.details["original_error"] is failure

    @pytest.mark.parametrize("value", [None, 42, ["a", "b"], {"code": 1}])
    def test_anything_else(self, value: object):
        error = normalize(value)
        assert error.kind == ErrorKind.UNKNOWN_ERROR
        assert error.message == UNKNOWN_ERROR_MESSAGE
        assert error.recoverable is False

    def test_never_raises_on_broken_str(self):
        """Test that an exception whose __str__ raises is still normalized."""

        class Unprintable(Exception):
            def __str__(self) -> str:
                raise RuntimeError("no")

        error = normalize(Unprintable())
        assert isinstance(error, ClassifiedError)
        assert error.kind == ErrorKind.INTERNAL_ERROR

    def test_never_raises_on_broken_message_property(self):
        class Failure:
            @property
            def message(self) -> str:
                raise ValueError("unreadable")

        failure = Failure()
        error = normalize(failure)
        assert error.kind == ErrorKind.UNKNOWN_ERROR
        assert error.message == UNKNOWN_ERROR_MESSAGE
        assert error.details["original_error"] is failure

    def test_never_raises_on_unprintable_mapping_message(self):
        class BadStr:
            def __str__(self) -> str:
                raise RuntimeError("no")

        error = normalize({"message": BadStr()})
        assert error.kind == ErrorKind.UNKNOWN_ERROR
        assert error.message == UNKNOWN_ERROR_MESSAGE

    def test_never_raises_on_broken_errno(self):
        class FlakySocketError(Exception):
            @property
            def errno(self) -> int:
                raise RuntimeError("closed")

        error = normalize(FlakySocketError("read ECONNRESET"))
        assert error.kind == ErrorKind.NETWORK_ERROR
        assert error.message == "read ECONNRESET"


class TestInferenceRules:
    """Tests for kind inference from native exceptions."""

    @pytest.mark.parametrize(
        ("message", "kind", "recoverable"),
        [
            ("ENOENT: no such file or directory, open '/tmp/x'", ErrorKind.FILE_NOT_FOUND, False),
            ("Model not found", ErrorKind.FILE_NOT_FOUND, False),
            ("EACCES: permission denied", ErrorKind.FILE_ACCESS_DENIED, False),
            ("Request timed out", ErrorKind.TIMEOUT_ERROR, True),
            ("ETIMEDOUT", ErrorKind.TIMEOUT_ERROR, True),
            ("Network is unreachable", ErrorKind.NETWORK_ERROR, True),
            ("connect ECONNREFUSED 127.0.0.1:443", ErrorKind.NETWORK_ERROR, True),
            ("read ECONNRESET", ErrorKind.NETWORK_ERROR, True),
            ("Rate limit exceeded", ErrorKind.PROVIDER_RATE_LIMITED, True),
            ("HTTP 429 Too Many Requests", ErrorKind.PROVIDER_RATE_LIMITED, True),
            ("401 Unauthorized", ErrorKind.PROVIDER_AUTH_FAILED, False),
            ("503 Service Unavailable", ErrorKind.PROVIDER_UNAVAILABLE, True),
            ("fatal: not a git repository", ErrorKind.GIT_NOT_INITIALIZED, False),
            ("git push exited with code 1", ErrorKind.GIT_OPERATION_FAILED, False),
            ("UNIQUE constraint failed: tasks.id", ErrorKind.DATABASE_CONSTRAINT_ERROR, False),
            ("sqlite3 error: database is locked", ErrorKind.DATABASE_ERROR, False),
            ("unexpected token", ErrorKind.INTERNAL_ERROR, False),
        ],
    )
    def test_message_patterns(self, message: str, kind: ErrorKind, recoverable: bool):
        error = normalize(Exception(message))
        assert error.kind == kind
        assert error.recoverable is recoverable

    def test_matching_is_case_insensitive(self):
        assert normalize(Exception("CONNECTION RESET")).kind == ErrorKind.NETWORK_ERROR

    def test_timeout_wins_over_network(self):
        """Test precedence when a message matches several rules."""
        error = normalize(Exception("network request timed out"))
        assert error.kind == ErrorKind.TIMEOUT_ERROR

    def test_not_found_wins_over_everything(self):
        error = normalize(Exception("connection not found"))
        assert error.kind == ErrorKind.FILE_NOT_FOUND

    def test_rate_limit_wins_over_unavailable(self):
        error = normalize(Exception("429 rate limited, service unavailable"))
        assert error.kind == ErrorKind.PROVIDER_RATE_LIMITED

    def test_git_requires_whole_word(self):
        """Test that 'git' inside another word does not match."""
        assert normalize(Exception("digital signature invalid")).kind == ErrorKind.INTERNAL_ERROR

    def test_errno_symbol_is_matched(self):
        """Test that the symbolic errno name participates in matching."""
        error = normalize(FileNotFoundError(errno.ENOENT, "No such file or directory"))
        assert error.kind == ErrorKind.FILE_NOT_FOUND
        assert error.details == {"error_type": "FileNotFoundError"}

        error = normalize(PermissionError(errno.EACCES, "Forbidden"))
        assert error.kind == ErrorKind.FILE_ACCESS_DENIED

        error = normalize(ConnectionRefusedError(errno.ECONNREFUSED, "Refused"))
        assert error.kind == ErrorKind.NETWORK_ERROR

    def test_class_name_is_matched(self):
        """Test that an empty TimeoutError is still classified by its type."""
        error = normalize(TimeoutError())
        assert error.kind == ErrorKind.TIMEOUT_ERROR
        assert error.recoverable is True

    def test_class_name_does_not_override_message(self):
        """Test that only the timeout rule looks at the exception's type name."""

        class NetworkXError(Exception):
            pass

        error = normalize(NetworkXError("401 Unauthorized"))
        assert error.kind == ErrorKind.PROVIDER_AUTH_FAILED
        assert error.recoverable is False

        error = normalize(NetworkXError("graph is not connected"))
        assert error.kind == ErrorKind.INTERNAL_ERROR

    def test_default_rules_order(self):
        kinds = [rule.kind for rule in DEFAULT_RULES]
        assert kinds[:7] == [
            ErrorKind.FILE_NOT_FOUND,
            ErrorKind.FILE_ACCESS_DENIED,
            ErrorKind.TIMEOUT_ERROR,
            ErrorKind.NETWORK_ERROR,
            ErrorKind.PROVIDER_RATE_LIMITED,
            ErrorKind.PROVIDER_AUTH_FAILED,
            ErrorKind.PROVIDER_UNAVAILABLE,
        ]


class TestErrorClassifier:
    """Tests for ErrorClassifier with custom rules."""

    def test_custom_rules_replace_defaults(self):
        classifier = ErrorClassifier(
            rules=(InferenceRule(ErrorKind.TASK_CANCELLED, (r"aborted",)),)
        )
        assert classifier.normalize(Exception("job aborted")).kind == ErrorKind.TASK_CANCELLED
        assert classifier.normalize(Exception("timed out")).kind == ErrorKind.INTERNAL_ERROR

    def test_empty_rules_fall_back_to_internal_error(self):
        classifier = ErrorClassifier(rules=())
        assert classifier.rules == ()
        assert classifier.normalize(TimeoutError()).kind == ErrorKind.INTERNAL_ERROR

    def test_infer_kind(self):
        classifier = ErrorClassifier()
        assert classifier.infer_kind(Exception("429")) == (ErrorKind.PROVIDER_RATE_LIMITED, True)
        assert classifier.infer_kind(Exception("???")) == (ErrorKind.INTERNAL_ERROR, False)

    def test_rule_matches(self):
        rule = InferenceRule(ErrorKind.NETWORK_ERROR, (r"econnreset",), recoverable=True)
        assert rule.matches("read ECONNRESET")
        assert not rule.matches("read ok")
