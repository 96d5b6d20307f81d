"""Circuit breaker pattern for resilient execution.

Implements the circuit breaker pattern to stop hammering a failing dependency
and to recover from it automatically once it is healthy again.

The circuit breaker has three states:
- CLOSED: Normal operation, calls flow through
- OPEN: Calls are rejected without reaching the dependency
- HALF_OPEN: Calls flow through as probes of the dependency's health

State transitions:
- CLOSED -> OPEN: When failure_count >= failure_threshold
- OPEN -> HALF_OPEN: On the first call after reset_timeout has elapsed
- HALF_OPEN -> CLOSED: After half_open_success_threshold successful probes
- HALF_OPEN -> OPEN: On any failed probe

Example usage:
    from forge.execution.circuit_breaker import CircuitBreaker

    breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30.0, name="anthropic")

    try:
        reply = await breaker.execute(lambda: provider.complete(prompt))
    except ClassifiedError as e:
        if e.kind == ErrorKind.PROVIDER_UNAVAILABLE and breaker.is_open():
            wait_time = breaker.time_until_retry()
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, TypeVar

from forge.core.config import CircuitBreakerConfig
from forge.core.errors import ClassifiedError, ErrorKind
from forge.core.logging import get_logger

from .outcome import Operation

T = TypeVar("T")

_logger = get_logger("circuit_breaker")

OPEN_CIRCUIT_MESSAGE = "Circuit breaker is OPEN - service temporarily unavailable"


class CircuitState(str, Enum):
    """State of the circuit breaker."""

    CLOSED = "closed"
    """Normal operation - calls are allowed and failures are counted."""

    OPEN = "open"
    """Blocking calls - rejected until reset_timeout has elapsed."""

    HALF_OPEN = "half_open"
    """Probing recovery - calls are allowed and successes are counted."""


@dataclass
class CircuitBreakerStats:
    """Lifetime statistics for monitoring a circuit breaker.

    Unlike the state machine counters, statistics survive ``reset()``.
    """

    total_successes: int = 0
    """Total number of successful calls recorded."""

    total_failures: int = 0
    """Total number of failed calls recorded."""

    total_rejections: int = 0
    """Calls rejected without running because the circuit was OPEN."""

    times_opened: int = 0
    """Number of transitions to OPEN."""

    times_half_opened: int = 0
    """Number of transitions to HALF_OPEN."""

    times_closed: int = 0
    """Number of transitions to CLOSED from another state."""

    last_failure_at: float | None = None
    """Clock reading of the most recent failure."""

    last_state_change_at: float | None = None
    """Clock reading of the most recent state transition."""

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


class CircuitBreaker:
    """Circuit breaker guarding one dependency.

    Thread-safe: state and counters are only modified while holding a lock.
    The lock is never held while the protected operation runs, so concurrent
    callers do not serialize on the dependency itself.

    Attributes:
        failure_threshold: Consecutive failures before opening the circuit.
        reset_timeout: Seconds to stay OPEN before letting a probe through.
        half_open_success_threshold: Successful probes needed to close again.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        half_open_success_threshold: int = 2,
        name: str = "default",
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            failure_threshold: Number of consecutive failures before opening
                the circuit. Default is 5.
            reset_timeout: Seconds to wait in OPEN state before the next call
                is let through as a probe. Default is 60.
            half_open_success_threshold: Successful probes in HALF_OPEN state
                needed to close the circuit. Default is 2.
            name: Name for this circuit breaker (used in logging and errors).
            clock: Monotonic time source in seconds.
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if reset_timeout < 0:
            raise ValueError("reset_timeout must not be negative")
        if half_open_success_threshold < 1:
            raise ValueError("half_open_success_threshold must be at least 1")

        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout
        self._half_open_success_threshold = half_open_success_threshold
        self._name = name
        self._clock = clock

        # State (protected by lock)
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: float | None = None
        self._stats = CircuitBreakerStats()

        self._lock = Lock()

        _logger.debug(
            "circuit_breaker.initialized",
            name=name,
            failure_threshold=failure_threshold,
            reset_timeout=reset_timeout,
            half_open_success_threshold=half_open_success_threshold,
        )

    @classmethod
    def from_config(
        cls,
        config: CircuitBreakerConfig,
        name: str = "default",
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> CircuitBreaker:
        return cls(
            failure_threshold=config.failure_threshold,
            reset_timeout=config.reset_timeout,
            half_open_success_threshold=config.half_open_success_threshold,
            name=name,
            clock=clock,
        )

    @property
    def failure_threshold(self) -> int:
        return self._failure_threshold

    @property
    def reset_timeout(self) -> float:
        return self._reset_timeout

    @property
    def half_open_success_threshold(self) -> int:
        return self._half_open_success_threshold

    @property
    def name(self) -> str:
        return self._name

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    @property
    def success_count(self) -> int:
        with self._lock:
            return self._success_count

    @property
    def last_failure_time(self) -> float | None:
        with self._lock:
            return self._last_failure_time

    def get_state(self) -> CircuitState:
        """Get the current circuit state.

        This is a plain read: an OPEN circuit whose reset_timeout has elapsed
        stays OPEN until the next ``execute()`` call lets a probe through.
        """
        with self._lock:
            return self._state

    def is_open(self) -> bool:
        with self._lock:
            return self._state == CircuitState.OPEN

    async def execute(self, operation: Operation[T]) -> T:
        """Run ``operation`` under circuit breaker protection.

        Args:
            operation: Zero-argument coroutine function to run.

        Returns:
            The operation's result.

        Raises:
            ClassifiedError: PROVIDER_UNAVAILABLE if the circuit is OPEN and
                reset_timeout has not elapsed. The operation is not called.
            Exception: Whatever the operation raised, unchanged.
        """
        rejection = self._before_call()
        if rejection is not None:
            raise rejection

        try:
            result = await operation()
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def _before_call(self) -> ClassifiedError | None:
        """Admit or reject a call, moving OPEN -> HALF_OPEN when due."""
        with self._lock:
            self._maybe_transition_to_half_open()
            if self._state != CircuitState.OPEN:
                return None

            self._stats.total_rejections += 1
            error = ClassifiedError(
                ErrorKind.PROVIDER_UNAVAILABLE,
                OPEN_CIRCUIT_MESSAGE,
                {
                    "breaker": self._name,
                    "failure_count": self._failure_count,
                    "last_failure_time": self._last_failure_time,
                },
                recoverable=True,
            )

        _logger.debug(
            "circuit_breaker.rejected",
            name=self._name,
            failure_count=error.details["failure_count"],
        )
        return error

    def _maybe_transition_to_half_open(self) -> None:
        """Check if we should transition from OPEN to HALF_OPEN.

        Should be called while holding the lock.
        """
        if self._state != CircuitState.OPEN or self._last_failure_time is None:
            return

        elapsed = self._clock() - self._last_failure_time
        if elapsed >= self._reset_timeout:
            self._success_count = 0
            self._set_state(CircuitState.HALF_OPEN)
            _logger.info(
                "circuit_breaker.state_changed",
                name=self._name,
                from_state=CircuitState.OPEN.value,
                to_state=CircuitState.HALF_OPEN.value,
                reason="reset_timeout_elapsed",
                elapsed_seconds=round(elapsed, 3),
            )

    def _set_state(self, new_state: CircuitState) -> None:
        """Set the circuit state and update statistics.

        Should be called while holding the lock.
        """
        old_state = self._state
        if old_state == new_state:
            return

        self._state = new_state
        self._stats.last_state_change_at = self._clock()

        if new_state == CircuitState.OPEN:
            self._stats.times_opened += 1
        elif new_state == CircuitState.HALF_OPEN:
            self._stats.times_half_opened += 1
        else:
            self._stats.times_closed += 1

    def record_success(self) -> None:
        """Record a successful call.

        Effects by state:
        - CLOSED: Resets the consecutive failure count
        - HALF_OPEN: Counts a successful probe; may transition to CLOSED
        - OPEN: No effect (the call started before the circuit opened)
        """
        with self._lock:
            self._stats.total_successes += 1

            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self._half_open_success_threshold:
                    self._failure_count = 0
                    self._success_count = 0
                    self._set_state(CircuitState.CLOSED)
                    _logger.info(
                        "circuit_breaker.state_changed",
                        name=self._name,
                        from_state=CircuitState.HALF_OPEN.value,
                        to_state=CircuitState.CLOSED.value,
                        reason="recovery_confirmed",
                    )
            elif self._state == CircuitState.CLOSED:
                self._failure_count = 0

    def record_failure(self) -> None:
        """Record a failed call.

        Effects by state:
        - CLOSED: Increments failure count, may transition to OPEN
        - HALF_OPEN: Transitions back to OPEN (recovery failed)
        - OPEN: Counts the failure and restarts the reset timeout
        """
        with self._lock:
            now = self._clock()
            self._stats.total_failures += 1
            self._stats.last_failure_at = now
            self._failure_count += 1
            self._last_failure_time = now

            if self._state == CircuitState.HALF_OPEN:
                self._set_state(CircuitState.OPEN)
                _logger.warning(
                    "circuit_breaker.state_changed",
                    name=self._name,
                    from_state=CircuitState.HALF_OPEN.value,
                    to_state=CircuitState.OPEN.value,
                    reason="recovery_probe_failed",
                )
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self._failure_threshold
            ):
                self._set_state(CircuitState.OPEN)
                _logger.warning(
                    "circuit_breaker.state_changed",
                    name=self._name,
                    from_state=CircuitState.CLOSED.value,
                    to_state=CircuitState.OPEN.value,
                    reason="failure_threshold_exceeded",
                    failure_count=self._failure_count,
                    failure_threshold=self._failure_threshold,
                )

    def time_until_retry(self) -> float | None:
        """Seconds until an OPEN circuit lets a probe through.

        Returns:
            Remaining seconds (0.0 if already due), or None if not OPEN.
        """
        with self._lock:
            if self._state != CircuitState.OPEN or self._last_failure_time is None:
                return None
            elapsed = self._clock() - self._last_failure_time
            return max(0.0, self._reset_timeout - elapsed)

    def get_stats(self) -> CircuitBreakerStats:
        """Get a copy of the current statistics."""
        with self._lock:
            return dataclasses.replace(self._stats)

    def reset(self) -> None:
        """Force the circuit to CLOSED, bypassing the state machine.

        Zeroes both counters and clears the last failure time. Statistics
        are kept.
        """
        with self._lock:
            old_state = self._state
            self._failure_count = 0
            self._success_count = 0
            self._last_failure_time = None
            self._set_state(CircuitState.CLOSED)

        _logger.info(
            "circuit_breaker.reset",
            name=self._name,
            from_state=old_state.value,
        )

    def __repr__(self) -> str:
        return (
            f"CircuitBreaker(name={self._name!r}, state={self._state.value}, "
            f"failures={self._failure_count}/{self._failure_threshold})"
        )


__all__ = [
    "CircuitBreaker",
    "CircuitBreakerStats",
    "CircuitState",
    "OPEN_CIRCUIT_MESSAGE",
]
