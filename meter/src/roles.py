"""
Meter role table -- single source of truth for channel positions.

The host delivers its channel ids as an ordered list.  Position *i* in that
list always carries the role at index *i* of :data:`ROLE_TABLE`.  The table is
fixed at build time; configuration data can shorten the bound list but never
re-assign a role.

Each role belongs to one metric group (voltage, current, power, thd) and
carries the unit tag the renderer displays next to its value.

CHANGELOG:
- 2026-10-19: Derive chart series from the group table (STORY-013)
- 2026-10-19: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------

GROUP_VOLTAGE = "voltage"
GROUP_CURRENT = "current"
GROUP_POWER = "power"
GROUP_THD = "thd"

GROUP_UNITS: dict[str, str] = {
    GROUP_VOLTAGE: "V",
    GROUP_CURRENT: "A",
    GROUP_POWER: "kW",
    GROUP_THD: "%",
}
"""Unit tag per metric group."""


@dataclass(frozen=True, slots=True)
class RoleDef:
    """Definition of a single meter role.

    Attributes:
        index: Position in the host's ordered channel list.
        name: Field name used in resolved metrics (e.g. ``"thd_u1n"``).
        label: Display label (e.g. ``"THD U1-N"``).
        group: Metric group -- one of ``"voltage"``, ``"current"``,
            ``"power"``, ``"thd"``.
    """

    index: int
    name: str
    label: str
    group: str

    @property
    def unit(self) -> str:
        """Unit tag derived from the role's metric group."""
        return GROUP_UNITS[self.group]


# ---------------------------------------------------------------------------
# Role table (order == host channel order)
# ---------------------------------------------------------------------------

ROLE_TABLE: tuple[RoleDef, ...] = (
    RoleDef(0, "u1", "U1", GROUP_VOLTAGE),
    RoleDef(1, "u2", "U2", GROUP_VOLTAGE),
    RoleDef(2, "u3", "U3", GROUP_VOLTAGE),
    RoleDef(3, "i1", "I1", GROUP_CURRENT),
    RoleDef(4, "i2", "I2", GROUP_CURRENT),
    RoleDef(5, "i3", "I3", GROUP_CURRENT),
    RoleDef(6, "p1", "P1", GROUP_POWER),
    RoleDef(7, "p2", "P2", GROUP_POWER),
    RoleDef(8, "p3", "P3", GROUP_POWER),
    RoleDef(9, "p_total", "Ptotal", GROUP_POWER),
    RoleDef(10, "p_max", "Pmax", GROUP_POWER),
    RoleDef(11, "p_min", "Pmin", GROUP_POWER),
    RoleDef(12, "thd_i1", "THD I1", GROUP_THD),
    RoleDef(13, "thd_i2", "THD I2", GROUP_THD),
    RoleDef(14, "thd_i3", "THD I3", GROUP_THD),
    RoleDef(15, "thd_u1n", "THD U1-N", GROUP_THD),
    RoleDef(16, "thd_u2n", "THD U2-N", GROUP_THD),
    RoleDef(17, "thd_u3n", "THD U3-N", GROUP_THD),
)
"""All roles in host channel order."""

ROLES: dict[str, RoleDef] = {role.name: role for role in ROLE_TABLE}
"""Flat lookup of every role by field name."""

ROLE_COUNT: int = len(ROLE_TABLE)

# ---------------------------------------------------------------------------
# Chart series per history group
# ---------------------------------------------------------------------------


def roles_in_group(group: str) -> list[RoleDef]:
    """Return the roles of *group* in table order.

    Raises:
        ValueError: If *group* is not a known metric group.
    """
    if group not in GROUP_UNITS:
        raise ValueError(f"Unknown metric group '{group}'")
    return [role for role in ROLE_TABLE if role.group == group]


# The first three roles of each group are its per-phase values.
HISTORY_SERIES: dict[str, tuple[str, ...]] = {
    group: tuple(role.name for role in roles_in_group(group)[:3])
    for group in GROUP_UNITS
}
"""Role names plotted as value1/value2/value3 in each group's chart."""
