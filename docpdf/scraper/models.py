"""Data models for the browser side of the pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Literal

StopReason = Literal["exhausted", "distance_cap", "time_cap"]


@dataclass(frozen=True)
class ScrollBudget:
    """Bounds for one auto-scroll run.

    ``distance`` and ``max_distance`` are CSS pixels; ``interval`` and
    ``max_time`` are seconds.
    """

    distance: int = 100
    interval: float = 0.1
    max_distance: int = 50_000
    max_time: float = 12.0


@dataclass
class ScrollResult:
    """Outcome of an auto-scroll run."""

    reason: StopReason
    distance: int
    elapsed: float
    steps: int


@dataclass
class ProbeReport:
    """Counts of extractable content found on a materialized document."""

    url: str
    containers: int
    containers_with_content: int
    canvases: int

    @property
    def content_count(self) -> int:
        """Pages the extractor is expected to find (containers first, then canvases)."""
        if self.containers_with_content:
            return self.containers_with_content
        return self.canvases


@dataclass
class Deadline:
    """An absolute cut-off on *clock*, shared by the steps of one stage."""

    at: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(at=clock() + seconds, clock=clock)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.at - self.clock())

    @property
    def expired(self) -> bool:
        return self.clock() >= self.at
