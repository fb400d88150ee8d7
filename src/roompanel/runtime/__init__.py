"""Runtime helpers: the panel event queue and simulated collaborators."""

from .scheduler import AsyncioScheduler, ManualScheduler, ScheduledCall, Scheduler, Ticker
from .simulator import SimulatedRoomAutomation

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "SimulatedRoomAutomation",
    "Ticker",
]
