"""
Derived headline figures for the dashboard header and THD panel.

Pure and deterministic: no I/O, no clock, no error conditions.

CHANGELOG:
- 2026-10-19: NaN host total falls back to the phase sum (STORY-013)
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import math

from meter.src.models import DerivedSummary, ResolvedMetrics


def total_power(resolved: ResolvedMetrics) -> float:
    """Host-reported total power, rebuilt from the phases when it is 0.

    A host that genuinely reports 0 kW total is indistinguishable from one
    that does not report it at all; both take the p1+p2+p3 path, as does NaN.
    """
    if resolved.p_total and not math.isnan(resolved.p_total):
        return resolved.p_total
    return resolved.p1 + resolved.p2 + resolved.p3


def derive(resolved: ResolvedMetrics) -> DerivedSummary:
    """Compute the summary figures from one set of resolved metrics.

    Args:
        resolved: Values of all roles for this tick.

    Returns:
        A :class:`DerivedSummary`; ``u_total`` and ``i_total`` are always
        recomputed from the three phases, defaulted or not.
    """
    return DerivedSummary(
        u_total=(resolved.u1 + resolved.u2 + resolved.u3) / 3,
        i_total=resolved.i1 + resolved.i2 + resolved.i3,
        p_total=total_power(resolved),
        p_max=resolved.p_max,
        p_min=resolved.p_min,
        thd_main=max(resolved.thd_i1, resolved.thd_i2, resolved.thd_i3),
    )
