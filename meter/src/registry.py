"""
Channel registry: ordered host channel ids bound to fixed meter roles.

The registry holds the id list from the most recent configuration event.
``bind()`` replaces it wholesale -- there is no merge and no validation of
length or uniqueness.  A list shorter than the role table is legal; roles
past its end simply have no channel until the next configuration arrives.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Sequence

from meter.src.roles import ROLE_COUNT, ROLE_TABLE, ROLES, RoleDef

logger = logging.getLogger(__name__)

ChannelId = Hashable
"""Opaque host-assigned channel identifier (string or number)."""


class ChannelRegistry:
    """Ordered channel ids for the current host configuration.

    Position *i* of the bound list carries the role at ``ROLE_TABLE[i]``.
    Entries may be ``None`` when the host sent a descriptor without an id;
    the position is kept so later roles do not shift.
    """

    def __init__(self) -> None:
        self._ids: tuple[ChannelId | None, ...] = ()

    def bind(self, ordered_ids: Sequence[ChannelId | None]) -> None:
        """Replace the bound channel list unconditionally.

        Args:
            ordered_ids: Channel ids in host order.  Any length is accepted.
        """
        self._ids = tuple(ordered_ids)

        if len(self._ids) < ROLE_COUNT:
            unbound = [role.label for role in ROLE_TABLE[len(self._ids) :]]
            logger.info(
                "Short configuration: %d of %d roles bound, defaulting %s",
                len(self._ids),
                ROLE_COUNT,
                ", ".join(unbound),
            )
        elif len(self._ids) > ROLE_COUNT:
            logger.info(
                "Configuration has %d channels; positions past %d carry no role",
                len(self._ids),
                ROLE_COUNT,
            )

    def channel_for(self, role: RoleDef | str | int) -> ChannelId | None:
        """Return the channel id bound to *role*, or ``None`` if unbound.

        Args:
            role: A :class:`RoleDef`, a role field name, or a table index.

        Raises:
            KeyError: If a role name is not in the role table.
        """
        if isinstance(role, RoleDef):
            index = role.index
        elif isinstance(role, str):
            index = ROLES[role].index
        else:
            index = role

        if index < 0 or index >= len(self._ids):
            return None
        return self._ids[index]

    @property
    def channel_ids(self) -> tuple[ChannelId | None, ...]:
        """The bound ids in host order."""
        return self._ids

    @property
    def is_empty(self) -> bool:
        return not self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"ChannelRegistry(ids={list(self._ids)!r})"
