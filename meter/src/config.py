"""
Dashboard runtime configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files.

CHANGELOG:
- 2026-10-19: Require HOST_ACQUIRE_TIMEOUT_S instead of retrying forever (STORY-011)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings


class MeterSettings(BaseSettings):
    """Runtime configuration for the meter dashboard engine.

    Attributes:
        widget_host: Loader for the host runtime handle, as
            ``"package.module:factory"``.
        host_acquire_timeout_s: Seconds to keep polling for the host
            handle before giving up.  No default: operators choose it.
        host_retry_interval_s: Fixed delay between host polls.
        history_capacity: Samples kept per chart buffer.
        max_realtime_configs: Maximum channels requested from the host.
        health_path: Location of the JSON health file.
        log_level: Root log level name.
    """

    widget_host: str
    host_acquire_timeout_s: float
    host_retry_interval_s: float = 0.5
    history_capacity: int = 20
    max_realtime_configs: int = 20
    health_path: str = "/data/health.json"
    log_level: str = "INFO"

    @field_validator("widget_host")
    @classmethod
    def widget_host_must_be_loader_path(cls, v: str) -> str:
        """Validate the ``module:attr`` shape of the host loader path."""
        module, sep, attr = v.partition(":")
        if not sep or not module or not attr:
            raise ValueError(
                f"WIDGET_HOST must look like 'package.module:factory' (got: '{v}')"
            )
        return v

    @field_validator("host_acquire_timeout_s", "host_retry_interval_s")
    @classmethod
    def intervals_must_be_positive(cls, v: float) -> float:
        """Validate that host acquisition timings are strictly positive."""
        if v <= 0:
            raise ValueError("Host acquisition timings must be > 0 seconds")
        return v

    @field_validator("history_capacity")
    @classmethod
    def history_capacity_must_be_valid(cls, v: int) -> int:
        """Validate history capacity is between 1 and 1000."""
        if v < 1 or v > 1000:
            raise ValueError("HISTORY_CAPACITY must be >= 1 and <= 1000")
        return v

    @field_validator("max_realtime_configs")
    @classmethod
    def max_realtime_configs_must_be_valid(cls, v: int) -> int:
        """Validate the channel request limit is between 1 and 100."""
        if v < 1 or v > 100:
            raise ValueError("MAX_REALTIME_CONFIGS must be >= 1 and <= 100")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate and normalise the log level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL '{v}' is not a logging level")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
