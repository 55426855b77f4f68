"""
Host runtime acquisition with a bounded, fixed-interval retry.

The telemetry host is reached through a handle produced by a loader named in
settings (``"package.module:factory"``).  The handle may not be available yet
when the dashboard starts: the module may not import, or the factory may
return ``None``.  ``acquire_host`` polls the loader at a fixed interval until
a handle appears or the timeout expires, in which case it raises
:class:`HostUnavailableError` so the caller can report a terminal state
instead of waiting forever.

CHANGELOG:
- 2026-10-19: Replace unbounded polling with timeout + HostUnavailableError (STORY-011)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

HOST_PENDING = "pending"
HOST_READY = "ready"
HOST_UNAVAILABLE = "unavailable"


class HostUnavailableError(RuntimeError):
    """The host runtime handle did not appear before the timeout."""


class WidgetOptions(BaseModel):
    """Options passed to the host when the widget registers.

    Attributes mirror the host's init contract; :meth:`to_host_options`
    renders them with the host's camelCase keys.
    """

    need_realtime_configs: bool = True
    need_history_configs: bool = True
    need_actions: bool = True
    max_realtime_configs_count: int = 20
    max_history_configs_count: int = 1
    max_actions_count: int = 2
    min_realtime_configs_count: int = 0
    min_history_configs_count: int = 0
    min_actions_count: int = 0

    def to_host_options(self) -> dict[str, Any]:
        return {
            "needRealtimeConfigs": self.need_realtime_configs,
            "needHistoryConfigs": self.need_history_configs,
            "needActions": self.need_actions,
            "maxRealtimeConfigsCount": self.max_realtime_configs_count,
            "maxHistoryConfigsCount": self.max_history_configs_count,
            "maxActionsCount": self.max_actions_count,
            "minRealtimeConfigsCount": self.min_realtime_configs_count,
            "minHistoryConfigsCount": self.min_history_configs_count,
            "minActionsCount": self.min_actions_count,
        }


class WidgetHost(Protocol):
    """Runtime handle through which the host delivers events."""

    def init(
        self,
        *,
        options: dict[str, Any],
        on_configuration: Callable[[Any], None],
        on_values: Callable[[Any], None],
    ) -> None: ...


HostLoader = Callable[[], "WidgetHost | None"]


def import_loader(path: str) -> HostLoader:
    """Build a loader that resolves ``"module:factory"`` on every call.

    The returned loader yields ``None`` while the module cannot be imported
    or lacks the attribute, so it can be polled until the host is installed.
    """
    module_name, _, attr = path.partition(":")

    def _load() -> WidgetHost | None:
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            logger.debug("Host module '%s' not importable yet", module_name)
            return None
        factory = getattr(module, attr, None)
        if factory is None:
            return None
        return factory()

    return _load


async def acquire_host(
    loader: HostLoader,
    *,
    interval_s: float,
    timeout_s: float,
    on_state: Callable[[str], None] | None = None,
) -> WidgetHost:
    """Poll *loader* every *interval_s* until it returns a host handle.

    Args:
        loader: Returns the host handle, or ``None`` while it is not loaded.
        interval_s: Fixed delay between attempts.
        timeout_s: Total time to keep trying.
        on_state: Called with ``"pending"``, then ``"ready"`` or
            ``"unavailable"``.

    Returns:
        The host handle.

    Raises:
        HostUnavailableError: If no handle appeared within *timeout_s*.
    """
    if on_state is not None:
        on_state(HOST_PENDING)

    deadline = time.monotonic() + timeout_s
    attempt = 0
    while True:
        attempt += 1
        host = loader()
        if host is not None:
            logger.info("Host runtime acquired after %d attempt(s)", attempt)
            if on_state is not None:
                on_state(HOST_READY)
            return host

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        logger.warning(
            "Host runtime not loaded yet (attempt %d), retrying in %.1fs",
            attempt,
            interval_s,
        )
        await asyncio.sleep(min(interval_s, remaining))

    if on_state is not None:
        on_state(HOST_UNAVAILABLE)
    raise HostUnavailableError(
        f"Host runtime unavailable after {attempt} attempts ({timeout_s}s)"
    )
