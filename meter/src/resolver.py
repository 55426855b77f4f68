"""
Pure resolver that turns host payloads into a fixed-shape ResolvedMetrics.

Three steps, all free of I/O and clocks:

1. ``parse_configuration`` extracts the ordered channel ids from the host's
   configuration event.
2. ``parse_values`` extracts ``{channel_id: number}`` from a values event,
   dropping entries without a usable numeric ``value``.
3. ``resolve`` looks up every role's bound channel in that reading.  A role
   with no bound channel or no live value resolves to 0 -- never ``None``,
   never an exception.  Numbers are passed through unchanged.

Every default-fill is reported through an optional callback and a DEBUG log
line so that "sensor reads zero" and "sensor missing" can still be told apart
in diagnostics.

CHANGELOG:
- 2026-10-19: Drop integers too large for a float (STORY-013)
- 2026-10-19: Report default-fills through on_default callback (STORY-009)
- 2026-10-19: Accept attribute-style descriptors and value objects (STORY-008)
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from numbers import Real
from typing import Any

from meter.src.models import ResolvedMetrics
from meter.src.registry import ChannelId, ChannelRegistry
from meter.src.roles import ROLE_TABLE, RoleDef

logger = logging.getLogger(__name__)

DEFAULT_VALUE: float = 0.0
"""Value used for any role without a live reading."""

REASON_UNBOUND = "unbound"
"""The role has no channel in the current configuration."""

REASON_MISSING = "missing"
"""The role's channel is bound but absent from the reading."""

RawReading = Mapping[ChannelId, float]

DefaultCallback = Callable[[RoleDef, str], None]


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def _field(obj: Any, name: str) -> Any:
    """Read *name* from a mapping key or an attribute; ``None`` if absent."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _is_number(value: Any) -> bool:
    # bool is a Real subclass but never a meter reading.
    return isinstance(value, Real) and not isinstance(value, bool)


def _as_float(value: Any) -> float | None:
    """Return *value* as a float, or ``None`` if it is not a usable number."""
    if not _is_number(value):
        return None
    try:
        return float(value)
    except OverflowError:
        # Integers past the float range, e.g. 10**400 from a JSON payload.
        return None


def parse_configuration(payload: Any) -> list[ChannelId | None]:
    """Extract the ordered channel ids from a host configuration event.

    Args:
        payload: Either a mapping/object with a ``realtime_configs`` sequence,
            or that descriptor sequence directly.  Each descriptor exposes an
            ``id`` as a key or attribute.

    Returns:
        Channel ids in host order.  A descriptor without an id contributes
        ``None`` so that later positions keep their role.
    """
    descriptors = _field(payload, "realtime_configs")
    if descriptors is None:
        if isinstance(payload, Mapping) or not isinstance(payload, Iterable):
            logger.warning(
                "Configuration payload has no realtime_configs; binding no channels"
            )
            return []
        descriptors = payload

    ids: list[ChannelId | None] = []
    for position, descriptor in enumerate(descriptors):
        channel_id = _field(descriptor, "id")
        if channel_id is None:
            logger.warning(
                "Configuration descriptor at position %d has no id", position
            )
        ids.append(channel_id)
    return ids


def parse_values(payload: Mapping[Any, Any] | None) -> dict[ChannelId, float]:
    """Extract ``{channel_id: number}`` from a host values event.

    Entries whose object carries no numeric ``value`` are dropped with a
    warning, so the roles that read them resolve to 0.  NaN, negative and
    out-of-range floats are kept as-is; integers too large for a float are
    dropped.

    Args:
        payload: Mapping of channel id to an object with a ``value`` field.

    Returns:
        A plain dict suitable for :func:`resolve`.
    """
    if not isinstance(payload, Mapping):
        if payload is not None:
            logger.warning(
                "Values payload is %s, not a mapping; treating as empty",
                type(payload).__name__,
            )
        return {}

    reading: dict[ChannelId, float] = {}
    for channel_id, entry in payload.items():
        value = _field(entry, "value") if entry is not None else None
        number = _as_float(value)
        if number is None:
            logger.warning(
                "Channel %r: no numeric value in %r, dropping", channel_id, entry
            )
            continue
        reading[channel_id] = number
    return reading


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(
    registry: ChannelRegistry,
    raw: RawReading,
    *,
    on_default: DefaultCallback | None = None,
) -> ResolvedMetrics:
    """Resolve every role to a number using the bound registry.

    This is a **pure function** with respect to its return value: the same
    registry contents and reading always give the same metrics.

    Args:
        registry: The current channel binding.
        raw: Reading for this tick, ``{channel_id: number}``.
        on_default: Called as ``on_default(role, reason)`` for every role
            that falls back to 0, with *reason* ``"unbound"`` or
            ``"missing"``.

    Returns:
        A :class:`ResolvedMetrics` with all 18 fields populated.
    """
    fields: dict[str, float] = {}

    for role in ROLE_TABLE:
        channel_id = registry.channel_for(role)

        if channel_id is None:
            reason = REASON_UNBOUND
        elif channel_id not in raw:
            reason = REASON_MISSING
        else:
            fields[role.name] = raw[channel_id]
            continue

        logger.debug("Role '%s' %s; defaulting to %s", role.label, reason, DEFAULT_VALUE)
        if on_default is not None:
            on_default(role, reason)
        fields[role.name] = DEFAULT_VALUE

    return ResolvedMetrics(**fields)
