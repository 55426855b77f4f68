"""
Dashboard runtime: host acquisition, event pump and graceful shutdown.

Startup:
1. Configure structured JSON logging and load :class:`MeterSettings`.
2. Poll for the host runtime handle (bounded by HOST_ACQUIRE_TIMEOUT_S).
3. Register with the host, passing the pump's two callbacks.

The host may call those callbacks from any thread.  They only enqueue the
event onto the asyncio loop; a single consumer task applies events to the
:class:`TelemetryEngine` one at a time, so every update (resolve -> derive ->
append to all four buffers -> publish) completes before the next starts.

Graceful shutdown on SIGTERM/SIGINT sets a shared asyncio.Event; events that
were already delivered are still applied before exit.

CHANGELOG:
- 2026-10-19: Exit with status 1 when the host never becomes available (STORY-011)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from meter.src.engine import TelemetryEngine
from meter.src.health import HealthWriter
from meter.src.host import (
    HostUnavailableError,
    WidgetOptions,
    acquire_host,
    import_loader,
)
from meter.src.models import DashboardState

logger = logging.getLogger(__name__)

EVENT_CONFIGURATION = "configuration"
EVENT_VALUES = "values"

_IDLE_CHECK_S: float = 0.5
"""How often the idle pump re-checks the shutdown event."""


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the dashboard engine.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup.

    Args:
        settings: A MeterSettings instance (or any object with the same attrs).
    """
    logger.info(
        "Meter dashboard starting with config: "
        "widget_host=%s, host_acquire_timeout_s=%s, host_retry_interval_s=%s, "
        "history_capacity=%s, max_realtime_configs=%s, health_path=%s, "
        "log_level=%s",
        settings.widget_host,  # type: ignore[attr-defined]
        settings.host_acquire_timeout_s,  # type: ignore[attr-defined]
        settings.host_retry_interval_s,  # type: ignore[attr-defined]
        settings.history_capacity,  # type: ignore[attr-defined]
        settings.max_realtime_configs,  # type: ignore[attr-defined]
        settings.health_path,  # type: ignore[attr-defined]
        settings.log_level,  # type: ignore[attr-defined]
    )


def _log_snapshot(state: DashboardState) -> None:
    """Log the headline figures of a published snapshot."""
    summary = state.summary
    logger.info(
        "Tick %d at %s: U=%.1f V, I=%.1f A, P=%.1f kW, Pmax=%.1f kW, "
        "Pmin=%.1f kW, THD=%.1f%%",
        state.tick,
        state.updated_at,
        summary.u_total,
        summary.i_total,
        summary.p_total,
        summary.p_max,
        summary.p_min,
        summary.thd_main,
    )


def _safe_health(write: Callable[..., None], *args: Any) -> None:
    """Run a health-file write, logging instead of raising on failure."""
    try:
        write(*args)
    except Exception:
        logger.warning("Failed to write health file", exc_info=True)


# ---------------------------------------------------------------------------
# Single-writer event pump
# ---------------------------------------------------------------------------


class EventPump:
    """Serialises host events onto one consumer that drives the engine.

    Must be constructed inside a running event loop.  The two ``on_*``
    methods are safe to call from any thread.

    Args:
        engine: The telemetry engine to drive.
        health: HealthWriter instance, or None to skip health writes.
    """

    def __init__(
        self,
        engine: TelemetryEngine,
        *,
        health: HealthWriter | None = None,
    ) -> None:
        self._engine = engine
        self._health = health
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue()

    # -- host callbacks --

    def on_configuration(self, payload: Any) -> None:
        self._loop.call_soon_threadsafe(
            self._queue.put_nowait, (EVENT_CONFIGURATION, payload)
        )

    def on_values(self, payload: Any) -> None:
        self._loop.call_soon_threadsafe(
            self._queue.put_nowait, (EVENT_VALUES, payload)
        )

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # -- consumer --

    def apply(self, kind: str, payload: Any) -> None:
        """Apply a single event to the engine.

        Catches all exceptions so that the consumer loop is never broken.
        """
        try:
            if kind == EVENT_CONFIGURATION:
                self._engine.on_configuration(payload)
                if self._health is not None:
                    _safe_health(
                        self._health.record_configuration, len(self._engine.registry)
                    )
            elif kind == EVENT_VALUES:
                self._engine.on_values(payload)
                if self._health is not None:
                    _safe_health(self._health.record_values, self._engine.stats)
            else:
                logger.warning("Unknown host event kind '%s', dropping", kind)
        except Exception:
            logger.error("Failed to apply %s event", kind, exc_info=True)

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Apply queued events until *shutdown_event* is set, then drain.

        Args:
            shutdown_event: Event to signal graceful shutdown.
        """
        logger.info("Event pump started")
        while not shutdown_event.is_set():
            try:
                kind, payload = await asyncio.wait_for(
                    self._queue.get(), timeout=_IDLE_CHECK_S
                )
            except TimeoutError:
                continue
            self.apply(kind, payload)

        drained = 0
        while not self._queue.empty():
            kind, payload = self._queue.get_nowait()
            self.apply(kind, payload)
            drained += 1
        logger.info("Event pump stopped (drained %d pending events)", drained)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, acquire host, run the pump.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.

    Raises:
        SystemExit: With status 1 if the host runtime never becomes available.
    """
    configure_logging()

    from meter.src.config import MeterSettings

    settings = MeterSettings()
    logging.getLogger().setLevel(settings.log_level)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    health = HealthWriter(settings.health_path)
    engine = TelemetryEngine(history_capacity=settings.history_capacity)
    engine.subscribe(_log_snapshot)
    pump = EventPump(engine, health=health)

    try:
        host = await acquire_host(
            import_loader(settings.widget_host),
            interval_s=settings.host_retry_interval_s,
            timeout_s=settings.host_acquire_timeout_s,
            on_state=lambda state: _safe_health(health.set_host_state, state),
        )
    except HostUnavailableError:
        logger.error("Giving up on host runtime", exc_info=True)
        raise SystemExit(1) from None

    options = WidgetOptions(max_realtime_configs_count=settings.max_realtime_configs)
    host.init(
        options=options.to_host_options(),
        on_configuration=pump.on_configuration,
        on_values=pump.on_values,
    )

    await pump.run(shutdown_event)
    logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the dashboard engine."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
