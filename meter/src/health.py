"""
Health file writer for the dashboard engine.

Writes a JSON health file at a configurable path with:
- host_state: ``pending`` / ``ready`` / ``unavailable`` (``null`` before start).
- last_config_ts: ISO timestamp of the most recent configuration event.
- last_values_ts: ISO timestamp of the most recent applied values event.
- channel_count: Channels bound by the current configuration.
- updates, ignored_values, default_fills: Engine counters.

The file is rewritten on every state change, giving Docker HEALTHCHECK or
monitoring a simple liveness signal, and making silent default-fills visible.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from meter.src.engine import EngineStats


class HealthWriter:
    """Writes engine health status to a JSON file.

    Each mutating method updates the in-memory state and immediately
    rewrites the health file so it always reflects the latest status.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._host_state: str | None = None
        self._last_config_ts: str | None = None
        self._last_values_ts: str | None = None
        self._channel_count: int = 0
        self._updates: int = 0
        self._ignored_values: int = 0
        self._default_fills: int = 0

    def set_host_state(self, state: str) -> None:
        """Record the host acquisition state and write health file."""
        self._host_state = state
        self._write()

    def record_configuration(self, channel_count: int) -> None:
        """Record a configuration event and write health file.

        Args:
            channel_count: Number of channels bound by the event.
        """
        self._last_config_ts = datetime.now(tz=UTC).isoformat()
        self._channel_count = channel_count
        self._write()

    def record_values(self, stats: EngineStats) -> None:
        """Record a values event with the engine's counters and write health file."""
        self._last_values_ts = datetime.now(tz=UTC).isoformat()
        self._updates = stats.updates
        self._ignored_values = stats.ignored_values
        self._default_fills = stats.default_fills
        self._write()

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        data = {
            "host_state": self._host_state,
            "last_config_ts": self._last_config_ts,
            "last_values_ts": self._last_values_ts,
            "channel_count": self._channel_count,
            "updates": self._updates,
            "ignored_values": self._ignored_values,
            "default_fills": self._default_fills,
        }
        self.path.write_text(json.dumps(data))
