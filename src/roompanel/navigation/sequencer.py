"""Timed 0-100 progress bar shown while the room warms up or cools down."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..host.controls import Control
from ..logger import get_logger
from ..runtime.scheduler import ScheduledCall, Scheduler, Ticker

logger = get_logger(__name__)

STEPS = 100
DEFAULT_WATCHDOG_SECONDS = 300.0

CompletionCallback = Callable[[bool], None]


class Direction(str, Enum):
    POWERING_ON = "powering-on"
    POWERING_OFF = "powering-off"


@dataclass(frozen=True)
class SequencerState:
    is_animating: bool
    current_step: int
    direction: Optional[Direction]
    duration: float

    def to_dict(self) -> dict:
        return {
            "is_animating": self.is_animating,
            "current_step": self.current_step,
            "direction": self.direction.value if self.direction else None,
            "duration": self.duration,
        }


def _sanitise_duration(duration: object) -> float:
    try:
        seconds = float(duration)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Non-numeric progress duration %r; completing immediately", duration)
        return 0.0
    if math.isnan(seconds) or seconds < 0:
        logger.warning("Invalid progress duration %r; completing immediately", duration)
        return 0.0
    return seconds


class ProgressSequencer:
    """Drive the progress knob and text through 100 steps, guarded by a watchdog."""

    def __init__(
        self,
        scheduler: Scheduler,
        knob: Optional[Control],
        text: Optional[Control],
        watchdog_seconds: float = DEFAULT_WATCHDOG_SECONDS,
    ):
        self._scheduler = scheduler
        self._knob = knob
        self._text = text
        self._watchdog_seconds = watchdog_seconds
        self._ticker = Ticker(scheduler, self._step, name="progress")
        self._watchdog: Optional[ScheduledCall] = None
        self._animating = False
        self._step_count = 0
        self._direction: Optional[Direction] = None
        self._duration = 0.0
        self._on_complete: Optional[CompletionCallback] = None

    @property
    def is_animating(self) -> bool:
        return self._animating

    @property
    def state(self) -> SequencerState:
        return SequencerState(self._animating, self._step_count, self._direction, self._duration)

    def start(self, powering_on: bool, duration: float, on_complete: Optional[CompletionCallback] = None) -> bool:
        """Begin a run. Returns False, changing nothing, while a run is in progress."""

        if self._animating:
            logger.debug("Progress bar already running; ignoring start request")
            return False

        seconds = _sanitise_duration(duration)
        self._animating = True
        self._step_count = 0
        self._direction = Direction.POWERING_ON if powering_on else Direction.POWERING_OFF
        self._duration = seconds
        self._on_complete = on_complete
        self._display(0)

        self._cancel_watchdog()
        self._watchdog = self._scheduler.call_later(self._watchdog_seconds, self._on_watchdog)
        self._ticker.start(seconds / STEPS)
        logger.info("Progress bar started (%s, %.1fs)", self._direction.value, seconds)
        return True

    def stop(self) -> None:
        """Cancel any run without invoking its completion callback."""

        was_running = self._animating
        self._halt()
        if was_running:
            logger.info("Progress bar stopped at step %d", self._step_count)

    def _step(self) -> None:
        if not self._animating:
            self._ticker.stop()
            return
        self._step_count += 1
        self._display(self._step_count)
        if self._step_count >= STEPS:
            self._finish(timed_out=False)

    def _on_watchdog(self) -> None:
        self._watchdog = None
        if self._animating:
            logger.warning("Progress bar timeout reached after %.0fs at step %d", self._watchdog_seconds, self._step_count)
            self._finish(timed_out=True)

    def _finish(self, timed_out: bool) -> None:
        powering_on = self._direction is Direction.POWERING_ON
        callback = self._on_complete
        self._halt()
        if not timed_out:
            logger.info("Progress bar complete (%s)", Direction.POWERING_ON.value if powering_on else Direction.POWERING_OFF.value)
        if callback is not None:
            callback(powering_on)

    def _halt(self) -> None:
        self._ticker.stop()
        self._cancel_watchdog()
        self._animating = False
        self._on_complete = None

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _display(self, step: int) -> None:
        shown = step if self._direction is Direction.POWERING_ON else STEPS - step
        if self._knob is not None:
            self._knob.value = float(shown)
        if self._text is not None:
            self._text.string = f"{shown}%"
