"""One-shot delayed tasks on the station's SimPy clock."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import simpy

from .utils import ms_to_seconds

logger = logging.getLogger(__name__)


class CycleScheduler:
    """Holds at most one pending cycle completion and one pressure release.

    Tasks are SimPy processes, so they only fire while the owning engine
    advances ``env``. Scheduling a cycle while another is pending interrupts
    the older one; it never completes.
    """

    def __init__(self, env: simpy.Environment):
        self.env = env
        self._cycle: Optional[simpy.Process] = None
        self._pressure_release: Optional[simpy.Process] = None

    @property
    def cycle_pending(self) -> bool:
        return self._cycle is not None and self._cycle.is_alive

    @property
    def pressure_release_pending(self) -> bool:
        return self._pressure_release is not None and self._pressure_release.is_alive

    def schedule_cycle(self, delay_ms: int, callback: Callable[..., Any], *args) -> bool:
        """Schedule the cycle completion; returns True if a pending one was replaced."""
        replaced = False
        if self.cycle_pending:
            self._cycle.interrupt("replaced by a new cycle")
            replaced = True
        self._cycle = self.env.process(self._run_once("cycle", delay_ms, callback, args))
        return replaced

    def cancel_cycle(self) -> bool:
        """Drop the pending cycle completion; returns True if one was pending."""
        if not self.cycle_pending:
            return False
        self._cycle.interrupt("cancelled by reset")
        self._cycle = None
        return True

    def schedule_pressure_release(self, delay_ms: int, callback: Callable[..., Any]) -> bool:
        """Schedule the high pressure release unless one is already pending."""
        if self.pressure_release_pending:
            return False
        self._pressure_release = self.env.process(
            self._run_once("pressure_release", delay_ms, callback, ()))
        return True

    def _run_once(self, kind: str, delay_ms: int, callback: Callable[..., Any], args: tuple):
        try:
            yield self.env.timeout(ms_to_seconds(delay_ms))
        except simpy.Interrupt as interrupt:
            logger.debug(f"Pending {kind} task cancelled: {interrupt.cause}")
            return

        # clear the slot first so the callback may schedule a follow-up
        if kind == "cycle" and self._cycle is self.env.active_process:
            self._cycle = None
        elif kind == "pressure_release" and self._pressure_release is self.env.active_process:
            self._pressure_release = None
        callback(*args)
