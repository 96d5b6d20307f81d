"""Configuration models for the resilience layer.

All durations are in seconds. Models are pydantic v2 and can be loaded from
YAML::

    retry:
      max_attempts: 4
      initial_delay: 0.5
      max_delay: 20
    circuit_breaker:
      failure_threshold: 3
      reset_timeout: 30
    logging:
      level: DEBUG
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryPolicy(BaseModel):
    """Bounded exponential backoff settings.

    ``initial_delay`` may exceed ``max_delay``; every computed delay is
    clamped to ``max_delay``.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Total attempts, including the first")
    initial_delay: float = Field(
        default=1.0, ge=0, description="Delay before the second attempt (seconds)"
    )
    max_delay: float = Field(default=30.0, ge=0, description="Upper bound for any delay (seconds)")
    backoff_multiplier: float = Field(
        default=2.0, gt=1, description="Factor applied to the delay after each attempt"
    )


class CircuitBreakerConfig(BaseModel):
    """Configuration for a circuit breaker.

    State transitions:
    - CLOSED -> OPEN: after failure_threshold consecutive failures
    - OPEN -> HALF_OPEN: on the first call once reset_timeout has elapsed
    - HALF_OPEN -> CLOSED: after half_open_success_threshold successes
    - HALF_OPEN -> OPEN: on any failure
    """

    model_config = ConfigDict(frozen=True)

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Number of consecutive failures before opening circuit",
    )
    reset_timeout: float = Field(
        default=60.0,
        ge=0,
        description="Seconds to wait in OPEN state before probing recovery",
    )
    half_open_success_threshold: int = Field(
        default=2,
        ge=1,
        description="Successful probes needed in HALF_OPEN state to close the circuit",
    )


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for log file output (required if format='both')",
    )
    max_file_size_mb: int = Field(default=50, gt=0, le=1000)
    backup_count: int = Field(default=5, ge=0, le=100)
    include_timestamps: bool = True

    @model_validator(mode="after")
    def _check_file_path_required(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError(f"file_path is required when format='{self.format}'")
        return self


class ResilienceConfig(BaseModel):
    """Root configuration for the resilience layer."""

    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> ResilienceConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> ResilienceConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})


__all__ = [
    "CircuitBreakerConfig",
    "LogConfig",
    "ResilienceConfig",
    "RetryPolicy",
]
