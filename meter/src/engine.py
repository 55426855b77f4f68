"""
Telemetry engine: one explicitly constructed owner of all dashboard state.

The engine holds the channel registry, the four rolling chart buffers and the
latest published :class:`DashboardState`.  It reacts to the host's two
events:

- ``on_configuration(payload)`` re-binds the registry (wholesale replace).
- ``on_values(payload)`` runs resolve -> derive -> append to all four
  buffers, builds a new frozen snapshot and publishes it with a single
  reference swap, then notifies subscribers.

The engine is synchronous and expects a single writer.  Readers only ever
see complete snapshots, so a renderer can never observe a new summary next to
stale chart data.

CHANGELOG:
- 2026-10-19: Add subscribers and diagnostic counters (STORY-009)
- 2026-10-19: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from meter.src import history
from meter.src.deriver import derive
from meter.src.history import DEFAULT_HISTORY_CAPACITY, HistoryBuffer, HistorySample
from meter.src.models import (
    CurrentGroup,
    DashboardState,
    PowerGroup,
    ResolvedMetrics,
    ThdDetails,
    ThdGroup,
    VoltageGroup,
)
from meter.src.registry import ChannelRegistry
from meter.src.resolver import parse_configuration, parse_values, resolve
from meter.src.roles import HISTORY_SERIES, RoleDef

logger = logging.getLogger(__name__)

Listener = Callable[[DashboardState], None]


@dataclass
class EngineStats:
    """Diagnostic counters, reset together with the engine.

    Attributes:
        configurations: Configuration events applied.
        updates: Values events applied.
        ignored_values: Values events dropped because no channel was bound.
        default_fills: Role values defaulted to 0, summed over all updates.
        last_defaulted: Labels of roles defaulted in the latest update.
    """

    configurations: int = 0
    updates: int = 0
    ignored_values: int = 0
    default_fills: int = 0
    last_defaulted: list[str] = field(default_factory=list)


class TelemetryEngine:
    """Binds channels, resolves readings and publishes dashboard snapshots.

    Args:
        history_capacity: Samples kept per chart buffer (default 20).
        clock: Returns the local wall-clock time for tick labels.
            Injected so tests can control it.
    """

    def __init__(
        self,
        *,
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._history_capacity = history_capacity
        self._clock = clock
        self._listeners: list[Listener] = []
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to the initial unconfigured state.

        Drops the registry binding, empties every chart buffer and zeroes
        the counters.  Subscribers stay registered.
        """
        empty = HistoryBuffer(capacity=self._history_capacity)
        self._registry = ChannelRegistry()
        self._state = DashboardState(
            voltage_history=empty,
            current_history=empty,
            power_history=empty,
            thd_history=empty,
        )
        self.stats = EngineStats()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> DashboardState:
        """The latest published snapshot."""
        return self._state

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    @property
    def is_configured(self) -> bool:
        return self._state.status == "configured"

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* to receive every published snapshot.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Host events
    # ------------------------------------------------------------------

    def on_configuration(self, payload: Any) -> None:
        """Bind the channel ids carried by a host configuration event."""
        ids = parse_configuration(payload)
        self._registry.bind(ids)
        self.stats.configurations += 1
        if self._state.status != "configured":
            self._state = self._state.model_copy(update={"status": "configured"})
        logger.info("Configuration loaded: %d channels %s", len(ids), ids)

    def on_values(self, payload: Any) -> DashboardState:
        """Apply one host values event and publish the resulting snapshot.

        Ignored (and the current snapshot returned) while no channel is
        bound.

        Returns:
            The snapshot now visible through :attr:`state`.
        """
        if self._registry.is_empty:
            self.stats.ignored_values += 1
            logger.debug("Values event ignored: no channels bound")
            return self._state

        defaulted: list[str] = []

        def _on_default(role: RoleDef, reason: str) -> None:
            defaulted.append(role.label)

        raw = parse_values(payload)
        resolved = resolve(self._registry, raw, on_default=_on_default)
        state = self._build_state(resolved, now=self._clock())

        self._state = state
        self.stats.updates += 1
        self.stats.default_fills += len(defaulted)
        self.stats.last_defaulted = defaulted

        self._notify(state)
        return state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_state(self, resolved: ResolvedMetrics, *, now: datetime) -> DashboardState:
        """Build the next snapshot from the current one plus *resolved*."""
        summary = derive(resolved)
        tick_time = history.format_tick_time(now)
        previous = self._state

        buffers: dict[str, HistoryBuffer] = {}
        for group, series in HISTORY_SERIES.items():
            v1, v2, v3 = (getattr(resolved, name) for name in series)
            sample = HistorySample(time=tick_time, value1=v1, value2=v2, value3=v3)
            buffers[group] = history.append(previous.history(group), sample)

        return DashboardState(
            status="configured",
            tick=previous.tick + 1,
            updated_at=tick_time,
            summary=summary,
            voltage=VoltageGroup(u1=resolved.u1, u2=resolved.u2, u3=resolved.u3),
            current=CurrentGroup(i1=resolved.i1, i2=resolved.i2, i3=resolved.i3),
            power=PowerGroup(
                p1=resolved.p1,
                p2=resolved.p2,
                p3=resolved.p3,
                total=summary.p_total,
            ),
            thd=ThdGroup(
                main=summary.thd_main,
                details=ThdDetails(
                    thd_i1=resolved.thd_i1,
                    thd_i2=resolved.thd_i2,
                    thd_i3=resolved.thd_i3,
                    thd_u1n=resolved.thd_u1n,
                    thd_u2n=resolved.thd_u2n,
                    thd_u3n=resolved.thd_u3n,
                ),
            ),
            voltage_history=buffers["voltage"],
            current_history=buffers["current"],
            power_history=buffers["power"],
            thd_history=buffers["thd"],
        )

    def _notify(self, state: DashboardState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.error("Dashboard listener %r failed", listener, exc_info=True)
