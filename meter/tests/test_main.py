"""
Unit tests for the dashboard runtime module.

Tests verify:
- Host callbacks enqueue events; the pump applies them in delivery order.
- Callbacks from a foreign thread reach the single consumer.
- Health file is updated after configuration and values events.
- An engine error does not crash the pump.
- Shutdown drains already-delivered events.
- async_main exits with status 1 when the host never appears.
- async_main registers with the host using the widget options.
- JSON log formatter output.

CHANGELOG:
- 2026-10-19: Initial creation -- TDD tests written first (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from meter.src.engine import TelemetryEngine
from meter.src.health import HealthWriter
from meter.src.host import HostUnavailableError
from meter.src.main import (
    EVENT_CONFIGURATION,
    EVENT_VALUES,
    EventPump,
    async_main,
    configure_logging,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CONFIG = {"realtime_configs": [{"id": "u1"}, {"id": "u2"}, {"id": "u3"}]}
_VALUES = {"u1": {"value": 100}, "u2": {"value": 110}, "u3": {"value": 105}}


async def _run_until_idle(pump: EventPump, *, after: float = 0.05) -> None:
    """Run the pump, then request shutdown after a short delay."""
    shutdown_event = asyncio.Event()

    async def _trigger_shutdown() -> None:
        await asyncio.sleep(after)
        shutdown_event.set()

    await asyncio.wait_for(
        asyncio.gather(pump.run(shutdown_event), _trigger_shutdown()),
        timeout=5.0,
    )


@pytest.fixture()
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Event pump
# ---------------------------------------------------------------------------


class TestEventPumpApply:
    @pytest.mark.asyncio
    async def test_callbacks_applied_in_order(self) -> None:
        engine = TelemetryEngine()
        pump = EventPump(engine)

        pump.on_configuration(_CONFIG)
        pump.on_values(_VALUES)
        await _run_until_idle(pump)

        assert engine.state.summary.u_total == 105.0
        assert engine.state.tick == 1

    @pytest.mark.asyncio
    async def test_values_before_configuration_ignored(self) -> None:
        engine = TelemetryEngine()
        pump = EventPump(engine)

        pump.on_values(_VALUES)
        pump.on_configuration(_CONFIG)
        await _run_until_idle(pump)

        assert engine.stats.ignored_values == 1
        assert engine.state.tick == 0

    @pytest.mark.asyncio
    async def test_foreign_thread_callbacks(self) -> None:
        engine = TelemetryEngine()
        pump = EventPump(engine)

        def _host_thread() -> None:
            pump.on_configuration(_CONFIG)
            for _ in range(5):
                pump.on_values(_VALUES)

        thread = threading.Thread(target=_host_thread)
        thread.start()
        thread.join()
        await _run_until_idle(pump, after=0.1)

        assert engine.state.tick == 5
        assert len(engine.state.voltage_history) == 5

    @pytest.mark.asyncio
    async def test_engine_error_does_not_crash_pump(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        engine = MagicMock()
        engine.on_values.side_effect = [RuntimeError("boom"), None]
        pump = EventPump(engine)

        with caplog.at_level(logging.ERROR, logger="meter.src.main"):
            pump.apply(EVENT_VALUES, _VALUES)
            pump.apply(EVENT_VALUES, _VALUES)

        assert engine.on_values.call_count == 2
        assert "Failed to apply values event" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_event_kind_dropped(self) -> None:
        engine = MagicMock()
        pump = EventPump(engine)

        pump.apply("actions", {})

        engine.on_values.assert_not_called()
        engine.on_configuration.assert_not_called()


class TestEventPumpHealth:
    @pytest.mark.asyncio
    async def test_health_updated_after_events(self, tmp_path: Path) -> None:
        health_path = tmp_path / "health.json"
        engine = TelemetryEngine()
        pump = EventPump(engine, health=HealthWriter(health_path))

        pump.apply(EVENT_CONFIGURATION, _CONFIG)
        data = json.loads(health_path.read_text())
        assert data["channel_count"] == 3
        assert data["last_values_ts"] is None

        pump.apply(EVENT_VALUES, _VALUES)
        data = json.loads(health_path.read_text())
        assert data["updates"] == 1
        assert data["default_fills"] == 15

    @pytest.mark.asyncio
    async def test_health_write_failure_does_not_break_update(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        engine = TelemetryEngine()
        health = MagicMock()
        health.record_values.side_effect = OSError("read-only filesystem")
        pump = EventPump(engine, health=health)

        pump.apply(EVENT_CONFIGURATION, _CONFIG)
        with caplog.at_level(logging.WARNING, logger="meter.src.main"):
            pump.apply(EVENT_VALUES, _VALUES)

        assert engine.state.tick == 1
        assert "Failed to write health file" in caplog.text


class TestEventPumpShutdown:
    @pytest.mark.asyncio
    async def test_pending_events_drained_on_shutdown(self) -> None:
        engine = TelemetryEngine()
        pump = EventPump(engine)
        shutdown_event = asyncio.Event()
        shutdown_event.set()

        pump.on_configuration(_CONFIG)
        pump.on_values(_VALUES)
        await asyncio.sleep(0)  # let call_soon_threadsafe callbacks run
        assert pump.pending == 2

        await asyncio.wait_for(pump.run(shutdown_event), timeout=5.0)

        assert pump.pending == 0
        assert engine.state.tick == 1


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def _settings(tmp_path: Path) -> MagicMock:
    settings = MagicMock()
    settings.widget_host = "fake_era_host:EraWidget"
    settings.host_acquire_timeout_s = 1.0
    settings.host_retry_interval_s = 0.1
    settings.history_capacity = 20
    settings.max_realtime_configs = 18
    settings.health_path = str(tmp_path / "health.json")
    settings.log_level = "INFO"
    return settings


class TestAsyncMain:
    @pytest.mark.asyncio
    @pytest.mark.usefixtures("_restore_root_logger")
    async def test_host_unavailable_exits_with_status_1(self, tmp_path: Path) -> None:
        with (
            patch("meter.src.config.MeterSettings", return_value=_settings(tmp_path)),
            patch(
                "meter.src.main.acquire_host",
                new_callable=AsyncMock,
                side_effect=HostUnavailableError("gone"),
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            await async_main()

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("_restore_root_logger")
    async def test_registers_callbacks_with_host(self, tmp_path: Path) -> None:
        host = MagicMock()
        captured: dict[str, Any] = {}

        def _init(**kwargs: Any) -> None:
            captured.update(kwargs)
            kwargs["on_configuration"](_CONFIG)
            kwargs["on_values"](_VALUES)

        host.init.side_effect = _init

        async def _run(self: EventPump, shutdown_event: asyncio.Event) -> None:
            await asyncio.sleep(0)
            kind, payload = self._queue.get_nowait()
            self.apply(kind, payload)
            kind, payload = self._queue.get_nowait()
            self.apply(kind, payload)

        with (
            patch("meter.src.config.MeterSettings", return_value=_settings(tmp_path)),
            patch("meter.src.main.acquire_host", new_callable=AsyncMock, return_value=host),
            patch.object(EventPump, "run", _run),
        ):
            await async_main()

        assert captured["options"]["maxRealtimeConfigsCount"] == 18
        assert captured["options"]["needRealtimeConfigs"] is True
        health = json.loads((tmp_path / "health.json").read_text())
        assert health["updates"] == 1
        assert health["channel_count"] == 3


class TestConfigureLogging:
    @pytest.mark.usefixtures("_restore_root_logger")
    def test_json_formatter(self) -> None:
        configure_logging("WARNING")
        root = logging.getLogger()

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

        record = logging.LogRecord(
            "meter.src.engine", logging.WARNING, __file__, 1, "tick %d", (7,), None
        )
        entry = json.loads(root.handlers[0].format(record))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "meter.src.engine"
        assert entry["msg"] == "tick 7"
        assert "ts" in entry
