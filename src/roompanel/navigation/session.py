"""Assemble a panel from its collaborators and wire the control events."""

from __future__ import annotations

from threading import RLock
from typing import Callable, List, Optional

from ..config import PanelSettings
from ..host.automation import AutomationController, registered_controller
from ..host.base import HostAdapter, PageNotFound, PresentationHost, resolve_page_name
from ..host.components import ComponentDirectory
from ..host.controls import (
    HELP_BUTTONS,
    PROGRESS_KNOB,
    PROGRESS_TEXT,
    SIGNAL_PINS,
    Control,
    ControlSurface,
)
from ..logger import get_logger
from ..runtime.scheduler import Scheduler, Ticker
from .bridge import ExternalAutomationBridge
from .controller import PREEMPTING_SIGNALS, SUBLAYER_SIGNALS, NavigationStateMachine
from .layers import MainLayer
from .policy import TransitionPolicy
from .rules import RoutingSubLayerRules
from .sequencer import ProgressSequencer
from .visibility import LayerVisibilityApplier

logger = get_logger(__name__)


class PanelSession:
    """A running panel: state machine, wired controls and the automation sync timer."""

    def __init__(
        self,
        machine: NavigationStateMachine,
        surface: ControlSurface,
        scheduler: Scheduler,
        sync_interval: float = 5.0,
    ):
        self.machine = machine
        self.surface = surface
        self._scheduler = scheduler
        self._sync_interval = sync_interval
        self._sync = Ticker(scheduler, self._sync_tick, name="automation-sync")
        self._wired: List[Control] = []
        self.started = False

    @property
    def page(self) -> str:
        return self.machine.page

    @property
    def active_layer(self) -> MainLayer:
        return self.machine.active_layer

    @property
    def sync_running(self) -> bool:
        return self._sync.running

    def request_layer(self, index: int) -> bool:
        accepted = self.machine.request_layer(index)
        if not accepted:
            self.machine.refresh_buttons()
        return accepted

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        self._wire_controls()
        self.machine.initialize()
        if self.machine.bridge.controller is not None:
            self._sync.start(self._sync_interval)
            logger.info("Automation sync started (every %.1fs)", self._sync_interval)
        else:
            logger.info("No room automation controller registered; sync disabled")
        self.started = True
        set_current_panel(self)

    def stop(self) -> None:
        self._sync.stop()
        self.machine.cleanup()
        for control in self._wired:
            control.event_handler = None
        self._wired.clear()
        self.started = False
        clear_current_panel(self)
        logger.info("Panel session for %s stopped", self.page)

    def reinitialize(self, settings: Optional[PanelSettings] = None) -> None:
        """Replay the full page state, first applying ``settings`` when given."""

        if settings is not None:
            self.machine.apply_settings(settings)
        self.machine.reinitialize()

    def _sync_tick(self) -> None:
        self.machine.sync_with_automation()

    # ------------------------------------------------------------------ #
    # Event wiring                                                       #
    # ------------------------------------------------------------------ #

    def _wire(self, name: str, handler: Callable[[Control], None]) -> None:
        control = self.surface.get(name)
        if control is None:
            logger.debug("Control %s not present; handler not attached", name)
            return
        control.event_handler = handler
        self._wired.append(control)

    def _wire_controls(self) -> None:
        machine = self.machine
        for index in range(1, len(self.surface.nav_buttons) + 1):
            self._wire(f"btnNav{index:02d}", lambda _control, i=index: self.request_layer(i))
        for index in range(1, len(self.surface.routing_buttons) + 1):
            self._wire(f"btnRouting{index:02d}", lambda _control, i=index: self._press_routing(i))

        self._wire("btnStartSystem", lambda _control: machine.start_system())
        self._wire("btnNavShutdown", lambda _control: machine.show_shutdown_confirm())
        self._wire("btnShutdownCancel", lambda _control: machine.cancel_shutdown())
        self._wire("btnShutdownConfirm", lambda _control: machine.confirm_shutdown())

        for key, control_name in HELP_BUTTONS.items():
            self._wire(control_name, lambda _control, signal=f"help_{key}": machine.on_help(signal))

        for signal in PREEMPTING_SIGNALS:
            self._wire(
                SIGNAL_PINS[signal],
                lambda control, signal=signal: machine.on_preempting_signal(signal, control.boolean),
            )
        for signal in SUBLAYER_SIGNALS:
            self._wire(SIGNAL_PINS[signal], lambda _control, signal=signal: machine.on_sublayer_signal(signal))
        self._wire(SIGNAL_PINS["fire_alarm"], lambda control: machine.on_fire_alarm(control.boolean))

        for label in self.surface.label_variables:
            self._wire(label.name, lambda _control: machine.update_legends())

        logger.debug("Wired %d control event handlers", len(self._wired))

    def _press_routing(self, index: int) -> None:
        if not self.machine.press_routing_button(index):
            self.machine.refresh_buttons()

    def to_dict(self) -> dict:
        data = self.machine.snapshot()
        data["sync_running"] = self.sync_running
        return data


def create_panel(
    settings: PanelSettings,
    host: PresentationHost,
    surface: ControlSurface,
    directory: ComponentDirectory,
    scheduler: Scheduler,
    controller_lookup: Callable[[], Optional[AutomationController]] = registered_controller,
) -> PanelSession:
    """Build a panel session for ``settings.page_name`` on ``host``."""

    page = resolve_page_name(host, settings.page_name)
    if page is None:
        raise PageNotFound(f"Page '{settings.page_name}' is not available on the presentation host")

    applier = LayerVisibilityApplier(HostAdapter(host, page))
    bridge = ExternalAutomationBridge(
        page,
        surface,
        directory,
        component_name=settings.room_controls_component,
        page_warmup=settings.warmup_seconds,
        page_cooldown=settings.cooldown_seconds,
        controller_lookup=controller_lookup,
    )
    sequencer = ProgressSequencer(
        scheduler,
        surface.get(PROGRESS_KNOB),
        surface.get(PROGRESS_TEXT),
        watchdog_seconds=settings.watchdog_seconds,
    )
    machine = NavigationStateMachine(
        applier,
        TransitionPolicy(),
        RoutingSubLayerRules(applier, surface.signal),
        bridge,
        sequencer,
        surface,
        routing_layers=settings.routing_layers,
        default_routing_layer=settings.default_routing_layer,
        default_active_layer=MainLayer(settings.default_active_layer),
        post_warmup_layer=MainLayer(settings.post_warmup_layer),
        hidden_nav_indices=settings.hidden_nav_indices,
    )
    logger.info("Panel created for page %s", page)
    return PanelSession(machine, surface, scheduler, sync_interval=settings.sync_interval_seconds)


_CURRENT_LOCK = RLock()
_CURRENT: Optional[PanelSession] = None


def set_current_panel(panel: PanelSession) -> None:
    global _CURRENT
    with _CURRENT_LOCK:
        _CURRENT = panel


def clear_current_panel(panel: Optional[PanelSession] = None) -> None:
    global _CURRENT
    with _CURRENT_LOCK:
        if panel is None or _CURRENT is panel:
            _CURRENT = None


def current_panel() -> Optional[PanelSession]:
    """The most recently started panel, reachable by other scripts."""

    with _CURRENT_LOCK:
        return _CURRENT
