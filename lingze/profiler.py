"""Timed tasks recorded by the frame profiler."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ProfilerTask:
    """A named interval of time drawn in a packed colour."""

    start_time: float
    end_time: float
    name: str
    color: int

    def length(self) -> float:
        """Duration of the task."""
        return self.end_time - self.start_time