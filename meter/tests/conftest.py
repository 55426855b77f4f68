"""
Shared test fixtures for meter dashboard tests.

Provides environment variable fixtures for MeterSettings configuration tests
and a deterministic clock for engine tests.  All meter env vars are cleaned
before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Clock carries seconds into minutes (STORY-013)
- 2026-10-19: Add deterministic clock fixture for engine tests (STORY-007)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

# All MeterSettings environment variable names, used for cleanup.
_ALL_METER_ENV_VARS = (
    "WIDGET_HOST",
    "HOST_ACQUIRE_TIMEOUT_S",
    "HOST_RETRY_INTERVAL_S",
    "HISTORY_CAPACITY",
    "MAX_REALTIME_CONFIGS",
    "HEALTH_PATH",
    "LOG_LEVEL",
)


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 10, 19, 12, 0, 0)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def _clean_meter_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all meter env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_METER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for MeterSettings."""
    env = {
        "WIDGET_HOST": "era_host.widget:EraWidget",
        "HOST_ACQUIRE_TIMEOUT_S": "30",
        "HOST_RETRY_INTERVAL_S": "0.25",
        "HISTORY_CAPACITY": "50",
        "MAX_REALTIME_CONFIGS": "18",
        "HEALTH_PATH": "/tmp/meter-health.json",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones)."""
    env = {
        "WIDGET_HOST": "era_host.widget:EraWidget",
        "HOST_ACQUIRE_TIMEOUT_S": "10",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
