"""Background driver that advances a station engine in wall-clock time."""

from __future__ import annotations

import logging
import threading
import time

from .engine import StationEngine

logger = logging.getLogger(__name__)

DEFAULT_TICK_S = 0.05


class StationRuntime(threading.Thread):
    def __init__(self, engine: StationEngine, tick_s: float = DEFAULT_TICK_S):
        super().__init__(name="cfstation-runtime", daemon=True)
        self.engine = engine
        self.tick_s = tick_s
        self._stop_event = threading.Event()

    def stop(self, timeout: float = 2.0):
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout=timeout)

    def run(self):
        last = time.monotonic()
        while not self._stop_event.wait(self.tick_s):
            now = time.monotonic()
            try:
                self.engine.step(now - last)
            except Exception:
                logger.exception("Station simulation step failed; keeping the clock running")
            last = now
