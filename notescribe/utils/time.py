from __future__ import annotations

import time
from dataclasses import dataclass


def now_unix_s() -> float:
    """Wall-clock timestamp for manifest records."""
    return time.time()


@dataclass(slots=True)
class Timer:
    """Measures elapsed time on the monotonic clock, unaffected by clock adjustments."""

    started_monotonic_s: float

    @classmethod
    def start(cls) -> Timer:
        return cls(started_monotonic_s=time.monotonic())

    def elapsed_s(self) -> float:
        return max(0.0, time.monotonic() - self.started_monotonic_s)
