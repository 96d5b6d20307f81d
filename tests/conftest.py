"""Pytest fixtures for Forge tests."""

import logging
from collections.abc import Generator

import pytest
import structlog

from forge.core.errors import ErrorHub, reset_error_hub


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset structlog and root handlers around each test.

    The CLI callback reconfigures logging, which would otherwise leak into
    later tests.
    """
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_level = root_logger.level
    original_handlers = root_logger.handlers[:]
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture(autouse=True)
def reset_hub() -> Generator[None, None, None]:
    """Give every test a fresh process-wide error hub."""
    reset_error_hub()
    yield
    reset_error_hub()


@pytest.fixture
def hub() -> ErrorHub:
    """A private hub, isolated from the process-wide one."""
    return ErrorHub()


@pytest.fixture
def recorded(hub: ErrorHub) -> list[tuple]:
    """Every (error, context) pair handled by ``hub``."""
    calls: list[tuple] = []
    hub.on_error(lambda error, context: calls.append((error, context)))
    return calls


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
