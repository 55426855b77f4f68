"""
Rolling chart history: capacity-bounded, insertion-ordered sample buffers.

A :class:`HistoryBuffer` is immutable.  :func:`append` returns a new buffer
holding the previous samples plus the new one, truncated to the most recent
``capacity`` entries (oldest evicted first).  Because nothing is mutated in
place, a buffer already handed to the renderer never changes.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HISTORY_CAPACITY: int = 20
"""Samples kept per chart."""

TICK_TIME_FORMAT: str = "%H:%M:%S"
"""24-hour wall-clock label, no date and no timezone."""


class HistorySample(BaseModel):
    """One chart point: a shared tick label and three phase values."""

    model_config = ConfigDict(frozen=True)

    time: str
    value1: float
    value2: float
    value3: float


class HistoryBuffer(BaseModel):
    """Ordered chart samples, never longer than *capacity*.

    An empty buffer is the initial state and means "no data yet".
    """

    model_config = ConfigDict(frozen=True)

    capacity: int = DEFAULT_HISTORY_CAPACITY
    samples: tuple[HistorySample, ...] = Field(default_factory=tuple)

    @field_validator("capacity")
    @classmethod
    def capacity_must_be_positive(cls, v: int) -> int:
        """Validate that the buffer can hold at least one sample."""
        if v < 1:
            raise ValueError("History capacity must be >= 1")
        return v

    @property
    def is_empty(self) -> bool:
        return not self.samples

    @property
    def latest(self) -> HistorySample | None:
        return self.samples[-1] if self.samples else None

    def __len__(self) -> int:
        return len(self.samples)


def append(buffer: HistoryBuffer, sample: HistorySample) -> HistoryBuffer:
    """Return a new buffer with *sample* appended and the oldest overflow dropped.

    Args:
        buffer: The current buffer (left untouched).
        sample: The sample to add at the end.

    Returns:
        A buffer of length ``min(len(buffer) + 1, buffer.capacity)``.
    """
    samples = (*buffer.samples, sample)[-buffer.capacity :]
    return HistoryBuffer(capacity=buffer.capacity, samples=samples)


def format_tick_time(ts: datetime) -> str:
    """Render a wall-clock timestamp as a 24-hour ``HH:MM:SS`` label."""
    return ts.strftime(TICK_TIME_FORMAT)
