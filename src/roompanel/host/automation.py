"""Process-wide registration of the room automation controller."""

from __future__ import annotations

from threading import RLock
from typing import Optional, Protocol, runtime_checkable

from ..logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class AutomationController(Protocol):
    """What the panel expects from a room automation controller."""

    warmup_time: float
    cooldown_time: float

    @property
    def is_powered(self) -> bool: ...

    @property
    def is_warming(self) -> bool: ...

    @property
    def is_cooling(self) -> bool: ...

    def power_on(self) -> None: ...

    def power_off(self) -> None: ...


_REGISTRY_LOCK = RLock()
_CONTROLLER: Optional[AutomationController] = None


def register_controller(controller: AutomationController) -> None:
    """Make ``controller`` the globally reachable automation instance."""

    global _CONTROLLER
    with _REGISTRY_LOCK:
        if _CONTROLLER is not None and _CONTROLLER is not controller:
            logger.warning("Replacing registered automation controller %r", _CONTROLLER)
        _CONTROLLER = controller
        logger.info("Registered automation controller %r", controller)


def unregister_controller(controller: Optional[AutomationController] = None) -> None:
    """Drop the registered controller (only if it is ``controller`` when given)."""

    global _CONTROLLER
    with _REGISTRY_LOCK:
        if controller is not None and _CONTROLLER is not controller:
            logger.debug("Skipping unregister; a different controller is registered")
            return
        _CONTROLLER = None


def registered_controller() -> Optional[AutomationController]:
    with _REGISTRY_LOCK:
        return _CONTROLLER
