"""In-process stand-in for a room automation controller."""

from __future__ import annotations

from typing import Optional

from ..logger import get_logger
from .scheduler import ScheduledCall, Scheduler

logger = get_logger(__name__)


class SimulatedRoomAutomation:
    """Powers a virtual room on and off with warmup and cooldown phases."""

    def __init__(self, scheduler: Scheduler, warmup_time: float = 10.0, cooldown_time: float = 5.0):
        self._scheduler = scheduler
        self.warmup_time = warmup_time
        self.cooldown_time = cooldown_time
        self._powered = False
        self._warming = False
        self._cooling = False
        self._pending: Optional[ScheduledCall] = None

    def __repr__(self) -> str:
        return f"SimulatedRoomAutomation(powered={self._powered}, warming={self._warming}, cooling={self._cooling})"

    @property
    def is_powered(self) -> bool:
        return self._powered

    @property
    def is_warming(self) -> bool:
        return self._warming

    @property
    def is_cooling(self) -> bool:
        return self._cooling

    def power_on(self) -> None:
        if self._powered and not self._cooling:
            logger.debug("Simulated room already powered")
            return
        self._cancel_pending()
        self._powered = True
        self._cooling = False
        self._warming = True
        logger.info("Simulated room warming for %.1fs", self.warmup_time)
        self._pending = self._scheduler.call_later(self.warmup_time, self._finish_warmup)

    def power_off(self) -> None:
        if not self._powered and not self._warming:
            logger.debug("Simulated room already off")
            return
        self._cancel_pending()
        self._warming = False
        self._cooling = True
        logger.info("Simulated room cooling for %.1fs", self.cooldown_time)
        self._pending = self._scheduler.call_later(self.cooldown_time, self._finish_cooldown)

    def _finish_warmup(self) -> None:
        self._warming = False
        self._pending = None
        logger.info("Simulated room warmup complete")

    def _finish_cooldown(self) -> None:
        self._cooling = False
        self._powered = False
        self._pending = None
        logger.info("Simulated room cooldown complete")

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
