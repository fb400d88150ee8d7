"""Resolution of the room automation target and its power timings."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..host.automation import AutomationController, registered_controller
from ..host.base import ComponentNotFound
from ..host.components import Component, ComponentDirectory
from ..host.controls import SYSTEM_POWER_SWITCH, ControlSurface
from ..logger import get_logger

logger = get_logger(__name__)

COMPONENT_PREFIX = "compRoomControls"
COMPONENT_WARMUP_DEFAULT = 10.0
COMPONENT_COOLDOWN_DEFAULT = 5.0
FALLBACK_TIMING_SECONDS = 7.0

_WARMUP_CONTROLS = ("warmupTime", "WarmupTime")
_COOLDOWN_CONTROLS = ("cooldownTime", "CooldownTime")
_PAGE_TITLE = re.compile(r"UCI\s+([^(]+)")


@dataclass(frozen=True)
class AutomationStatus:
    powered: bool
    warming: bool
    cooling: bool


def component_name_for_page(page_name: str) -> Optional[str]:
    """``"UCI MPR (005)"`` -> ``"compRoomControlsMPR"``; None when the page is not titled that way."""

    match = _PAGE_TITLE.search(page_name)
    if not match:
        return None
    suffix = re.sub(r"\s+", "", match.group(1))
    return f"{COMPONENT_PREFIX}{suffix}" if suffix else None


def _numeric(value: object) -> Optional[float]:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or number < 0:
        return None
    return number


class ExternalAutomationBridge:
    """Power the room through whichever automation path is reachable."""

    def __init__(
        self,
        page_name: str,
        surface: ControlSurface,
        directory: ComponentDirectory,
        component_name: Optional[str] = None,
        page_warmup: Optional[float] = None,
        page_cooldown: Optional[float] = None,
        controller_lookup: Callable[[], Optional[AutomationController]] = registered_controller,
    ):
        self._surface = surface
        self._page_warmup = page_warmup
        self._page_cooldown = page_cooldown
        self._controller_lookup = controller_lookup
        self.component_name = component_name or component_name_for_page(page_name)
        self.component: Optional[Component] = self._resolve_component(directory)

    def _resolve_component(self, directory: ComponentDirectory) -> Optional[Component]:
        if not self.component_name:
            logger.warning("Could not determine room controls component name")
            return None
        logger.debug("Attempting to reference room controls component: %s", self.component_name)
        try:
            component = directory.lookup(self.component_name)
        except ComponentNotFound:
            logger.warning("Room controls component '%s' not found; using fallback paths", self.component_name)
            return None
        logger.info("Room controls component referenced: %s", self.component_name)
        return component

    @property
    def controller(self) -> Optional[AutomationController]:
        return self._controller_lookup()

    # ------------------------------------------------------------------ #
    # Power                                                              #
    # ------------------------------------------------------------------ #

    def power_on(self) -> bool:
        return self._set_power(True)

    def power_off(self) -> bool:
        return self._set_power(False)

    def _set_power(self, on: bool) -> bool:
        label = "ON" if on else "OFF"

        switch = self.component.get(SYSTEM_POWER_SWITCH) if self.component else None
        if switch is not None:
            switch.boolean = on
            logger.info("Room powered %s via component reference", label)
            return True

        local = self._surface.get(SYSTEM_POWER_SWITCH)
        if local is not None:
            local.boolean = on
            logger.info("Room powered %s via direct control", label)
            return True

        controller = self.controller
        if controller is not None:
            try:
                if on:
                    controller.power_on()
                else:
                    controller.power_off()
            except Exception as exc:  # pragma: no cover - defensive
                logger.warning("Global automation controller failed to power %s: %s", label, exc)
            else:
                logger.info("Room powered %s via global controller", label)
                return True

        logger.warning("Failed to power %s room automation system; no path available", label)
        return False

    # ------------------------------------------------------------------ #
    # Timing                                                             #
    # ------------------------------------------------------------------ #

    def get_timing(self, is_warmup: bool) -> float:
        """Seconds the progress bar should take for the requested phase."""

        phase = "warmup" if is_warmup else "cooldown"

        if self.component is not None:
            names = _WARMUP_CONTROLS if is_warmup else _COOLDOWN_CONTROLS
            for name in names:
                control = self.component.get(name)
                if control is not None:
                    seconds = _numeric(control.value)
                    if seconds is not None:
                        logger.info("Using room controls component %s timing: %.1fs", phase, seconds)
                        return seconds
                    logger.warning("Ignoring invalid component %s value %r", name, control.value)
            seconds = COMPONENT_WARMUP_DEFAULT if is_warmup else COMPONENT_COOLDOWN_DEFAULT
            logger.info("Room controls component lacks %s timing; using component default %.1fs", phase, seconds)
            return seconds

        page_value = _numeric(self._page_warmup if is_warmup else self._page_cooldown)
        if page_value is not None:
            logger.info("Using page %s timing: %.1fs", phase, page_value)
            return page_value

        controller = self.controller
        if controller is not None:
            seconds = _numeric(getattr(controller, "warmup_time" if is_warmup else "cooldown_time", None))
            if seconds is not None:
                logger.info("Using global controller %s timing: %.1fs", phase, seconds)
                return seconds

        logger.info("No %s timing configured; using default %.1fs", phase, FALLBACK_TIMING_SECONDS)
        return FALLBACK_TIMING_SECONDS

    def set_page_timing(self, warmup: Optional[float], cooldown: Optional[float]) -> None:
        self._page_warmup = warmup
        self._page_cooldown = cooldown

    def status(self) -> Optional[AutomationStatus]:
        """Power flags of the registered controller, or None when there is none."""

        controller = self.controller
        if controller is None:
            return None
        return AutomationStatus(
            powered=bool(controller.is_powered),
            warming=bool(controller.is_warming),
            cooling=bool(controller.is_cooling),
        )
