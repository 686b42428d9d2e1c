"""Stopwatch measuring how long the station stays in fault."""

from __future__ import annotations

from typing import Callable, Optional

from .utils import seconds_to_ms


class FaultClock:
    """Stopwatch over a caller-supplied clock (seconds, e.g. ``env.now``)."""

    def __init__(self, now: Callable[[], float]):
        self._now = now
        self._accumulated_s = 0.0
        self._started_at: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    def start(self):
        if self._started_at is None:
            self._started_at = self._now()

    def stop(self):
        if self._started_at is not None:
            self._accumulated_s += self._now() - self._started_at
            self._started_at = None

    def reset(self):
        """Stop the clock and zero the elapsed time."""
        self._accumulated_s = 0.0
        self._started_at = None

    @property
    def elapsed_ms(self) -> int:
        elapsed = self._accumulated_s
        if self._started_at is not None:
            elapsed += self._now() - self._started_at
        return seconds_to_ms(elapsed)
