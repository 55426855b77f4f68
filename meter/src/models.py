"""
Pydantic models for resolved meter readings and published dashboard snapshots.

All models are frozen: a snapshot handed to the renderer can never change
under it.  A new snapshot is built for every values event.

CHANGELOG:
- 2026-10-19: Add grouped, unit-tagged views for the renderer (STORY-007)
- 2026-10-19: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from meter.src.history import HistoryBuffer


class ResolvedMetrics(BaseModel):
    """Values of all 18 roles after defaulting.

    Field names match :data:`meter.src.roles.ROLE_TABLE`.  Every field is a
    number; a role without a live value is 0.

    Attributes:
        u1, u2, u3: Phase voltages in V.
        i1, i2, i3: Phase currents in A.
        p1, p2, p3: Phase active powers in kW.
        p_total: Host-reported total power in kW (0 when not reported).
        p_max, p_min: Power extrema in kW.
        thd_i1, thd_i2, thd_i3: Current harmonic distortion in %.
        thd_u1n, thd_u2n, thd_u3n: Phase-to-neutral voltage distortion in %.
    """

    model_config = ConfigDict(frozen=True)

    u1: float = 0.0
    u2: float = 0.0
    u3: float = 0.0
    i1: float = 0.0
    i2: float = 0.0
    i3: float = 0.0
    p1: float = 0.0
    p2: float = 0.0
    p3: float = 0.0
    p_total: float = 0.0
    p_max: float = 0.0
    p_min: float = 0.0
    thd_i1: float = 0.0
    thd_i2: float = 0.0
    thd_i3: float = 0.0
    thd_u1n: float = 0.0
    thd_u2n: float = 0.0
    thd_u3n: float = 0.0


class DerivedSummary(BaseModel):
    """Headline figures derived from one set of resolved metrics.

    Attributes:
        u_total: Mean of the three phase voltages in V.
        i_total: Sum of the three phase currents in A.
        p_total: Host total, or p1+p2+p3 when the host total is 0.
        p_max: Maximum active power in kW, passed through.
        p_min: Minimum active power in kW, passed through.
        thd_main: Worst of the three current distortion figures in %.
    """

    model_config = ConfigDict(frozen=True)

    u_total: float = 0.0
    i_total: float = 0.0
    p_total: float = 0.0
    p_max: float = 0.0
    p_min: float = 0.0
    thd_main: float = 0.0


# ---------------------------------------------------------------------------
# Grouped renderer views
# ---------------------------------------------------------------------------


class VoltageGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    u1: float = 0.0
    u2: float = 0.0
    u3: float = 0.0
    unit: Literal["V"] = "V"


class CurrentGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    i1: float = 0.0
    i2: float = 0.0
    i3: float = 0.0
    unit: Literal["A"] = "A"


class PowerGroup(BaseModel):
    """Phase powers plus the derived total."""

    model_config = ConfigDict(frozen=True)

    p1: float = 0.0
    p2: float = 0.0
    p3: float = 0.0
    total: float = 0.0
    unit: Literal["kW"] = "kW"


class ThdDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    thd_i1: float = 0.0
    thd_i2: float = 0.0
    thd_i3: float = 0.0
    thd_u1n: float = 0.0
    thd_u2n: float = 0.0
    thd_u3n: float = 0.0


class ThdGroup(BaseModel):
    """Headline distortion figure with the six per-phase details."""

    model_config = ConfigDict(frozen=True)

    main: float = 0.0
    details: ThdDetails = Field(default_factory=ThdDetails)
    unit: Literal["%"] = "%"


# ---------------------------------------------------------------------------
# Published snapshot
# ---------------------------------------------------------------------------

EngineStatus = Literal["unconfigured", "configured"]


class DashboardState(BaseModel):
    """Everything the renderer needs for one tick, published as one object.

    Attributes:
        status: ``"unconfigured"`` until the first configuration event.
        tick: Number of values events applied so far.
        updated_at: ``HH:MM:SS`` of the last applied values event, or
            ``None`` before the first one.
        summary: Derived headline figures.
        voltage, current, power, thd: Unit-tagged per-group values.
        voltage_history, current_history, power_history, thd_history:
            Rolling chart buffers, all sharing the same last ``time``.
    """

    model_config = ConfigDict(frozen=True)

    status: EngineStatus = "unconfigured"
    tick: int = 0
    updated_at: str | None = None
    summary: DerivedSummary = Field(default_factory=DerivedSummary)
    voltage: VoltageGroup = Field(default_factory=VoltageGroup)
    current: CurrentGroup = Field(default_factory=CurrentGroup)
    power: PowerGroup = Field(default_factory=PowerGroup)
    thd: ThdGroup = Field(default_factory=ThdGroup)
    voltage_history: HistoryBuffer = Field(default_factory=HistoryBuffer)
    current_history: HistoryBuffer = Field(default_factory=HistoryBuffer)
    power_history: HistoryBuffer = Field(default_factory=HistoryBuffer)
    thd_history: HistoryBuffer = Field(default_factory=HistoryBuffer)

    def history(self, group: str) -> HistoryBuffer:
        """Return the chart buffer for a metric group name.

        Raises:
            KeyError: If *group* is not one of the four metric groups.
        """
        buffers = {
            "voltage": self.voltage_history,
            "current": self.current_history,
            "power": self.power_history,
            "thd": self.thd_history,
        }
        return buffers[group]
