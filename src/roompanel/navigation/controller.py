"""Navigation and power-sequencing state machine for one panel page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import PanelSettings
from ..host.base import Transition
from ..host.controls import ControlSurface, required_controls
from ..logger import get_page_logger
from .bridge import AutomationStatus, ExternalAutomationBridge
from .layers import (
    BASE_LAYERS,
    DEFAULT_ROUTING_LAYERS,
    HIDE_BASE,
    IDLE_LAYERS,
    LAYER_BUTTONS,
    LAYER_CONFIGS,
    PROGRAM_VOLUME,
    ROUTING_VIEW,
    SHUTDOWN_CONFIRM,
    MainLayer,
    all_layers,
)
from .policy import TransitionPolicy
from .rules import RoutingSubLayerRules
from .sequencer import ProgressSequencer
from .visibility import LayerVisibilityApplier

# Signals that pull the panel onto a source layer when they go true.
PREEMPTING_SIGNALS: Dict[str, MainLayer] = {
    "usb_laptop": MainLayer.LAPTOP,
    "usb_pc": MainLayer.PC,
    "off_hook_laptop": MainLayer.LAPTOP,
    "off_hook_pc": MainLayer.PC,
    "hdmi01_active": MainLayer.LAPTOP,
    "hdmi02_active": MainLayer.PC,
}

SUBLAYER_SIGNALS = ("preset_saved", "hdmi01_connect", "hdmi02_connect", "acpr_bypass", "call_active")


@dataclass(frozen=True)
class LayerChange:
    """Notification sent to listeners after every layer change."""

    previous: MainLayer
    current: MainLayer
    reason: str

    @property
    def layer_name(self) -> str:
        return self.current.display_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "previous": int(self.previous),
            "current": int(self.current),
            "layer_name": self.layer_name,
            "reason": self.reason,
        }


LayerListener = Callable[[LayerChange], None]


def _power_phase(layer: MainLayer) -> str:
    if layer in IDLE_LAYERS:
        return "off"
    if layer is MainLayer.WARMING:
        return "warming"
    if layer is MainLayer.COOLING:
        return "cooling"
    return "on"


class NavigationStateMachine:
    """Owns the active layer and drives every visibility change on the page."""

    def __init__(
        self,
        applier: LayerVisibilityApplier,
        policy: TransitionPolicy,
        rules: RoutingSubLayerRules,
        bridge: ExternalAutomationBridge,
        sequencer: ProgressSequencer,
        surface: ControlSurface,
        *,
        routing_layers: Sequence[str] = DEFAULT_ROUTING_LAYERS,
        default_routing_layer: int = 1,
        default_active_layer: MainLayer = MainLayer.LAPTOP,
        post_warmup_layer: MainLayer = MainLayer.LAPTOP,
        hidden_nav_indices: Iterable[int] = (),
    ):
        self._applier = applier
        self._policy = policy
        self._rules = rules
        self._bridge = bridge
        self._sequencer = sequencer
        self._surface = surface
        self._routing_layers = tuple(routing_layers)
        self._hide_all = all_layers(self._routing_layers)
        self._default_active_layer = MainLayer(default_active_layer)
        self._post_warmup_layer = self._checked_post_warmup(post_warmup_layer)
        self._hidden_nav_indices = tuple(hidden_nav_indices)
        self._listeners: List[LayerListener] = []
        self._alarm_return: Optional[MainLayer] = None
        self._log = get_page_logger(__name__, applier.page)

        self.active_layer = MainLayer.START
        self.active_routing_layer = default_routing_layer

    # ------------------------------------------------------------------ #
    # Properties                                                         #
    # ------------------------------------------------------------------ #

    @property
    def page(self) -> str:
        return self._applier.page

    @property
    def initialized(self) -> bool:
        return self._applier.initialized

    @property
    def routing_layers(self) -> tuple[str, ...]:
        return self._routing_layers

    @property
    def fire_alarm_active(self) -> bool:
        return self._alarm_return is not None

    @property
    def sequencer(self) -> ProgressSequencer:
        return self._sequencer

    @property
    def bridge(self) -> ExternalAutomationBridge:
        return self._bridge

    # ------------------------------------------------------------------ #
    # Layer changes                                                      #
    # ------------------------------------------------------------------ #

    def request_layer(self, target: int) -> bool:
        """Navigate to ``target`` if the transition table allows it."""

        layer = MainLayer.coerce(target)
        if layer is None:
            self._log.warning("Unknown layer requested: %s", target)
            return False
        if not self._policy.is_allowed(self.active_layer, layer):
            self._log.info("Layer change to %s refused from %s", layer.display_name, self.active_layer.display_name)
            return False
        self._enter(layer, "navigation")
        return True

    def preempt_layer(self, target: int, reason: str) -> None:
        """Jump to ``target`` without consulting the transition table."""

        layer = MainLayer.coerce(target)
        if layer is None:
            self._log.warning("Unknown layer %s requested by %s", target, reason)
            return
        self._enter(layer, reason)

    def refresh(self) -> None:
        """Re-render the current layer without changing it."""

        self._render(self.active_layer)
        self._interlock()

    def refresh_buttons(self) -> None:
        """Restore both button interlocks after a refused press."""

        self._interlock()
        self._interlock_routing()

    def _enter(self, layer: MainLayer, reason: str) -> None:
        previous = self.active_layer
        self._render(layer)
        self.active_layer = layer
        self._interlock()
        self._notify(LayerChange(previous, layer, reason))
        self._log.info("Active layer: %s (%s)", layer.display_name, reason)

    def _render(self, layer: MainLayer) -> None:
        self._applier.apply(self._hide_all, False, Transition.NONE)
        self._applier.apply(BASE_LAYERS, True, Transition.NONE)
        config = LAYER_CONFIGS.get(layer)
        if config is None:
            return
        self._applier.apply(config.show, True, Transition.FADE)
        self._applier.apply(config.hide, False, Transition.NONE)
        for callback in config.callbacks:
            self._run_callback(callback, layer)

    def _run_callback(self, name: str, layer: MainLayer) -> None:
        if name == HIDE_BASE:
            self._applier.apply(BASE_LAYERS, False, Transition.NONE)
        elif name == ROUTING_VIEW:
            self._show_routing_view()
        else:
            self._rules.apply(name, layer)

    def _interlock(self) -> None:
        lit = LAYER_BUTTONS.get(self.active_layer)
        for index, button in enumerate(self._surface.nav_buttons, start=1):
            if button is not None:
                button.boolean = index == lit

    # ------------------------------------------------------------------ #
    # Routing destinations                                               #
    # ------------------------------------------------------------------ #

    def press_routing_button(self, index: int) -> bool:
        if not 1 <= index <= len(self._routing_layers):
            self._log.warning("Invalid routing button index: %s", index)
            return False
        self.active_routing_layer = index
        if self.active_layer is MainLayer.ROUTING:
            self._show_routing_view()
        else:
            self._interlock_routing()
        self._log.info("Routing layer switched to: %s", self._routing_layers[index - 1])
        return True

    def _show_routing_view(self) -> None:
        if not 1 <= self.active_routing_layer <= len(self._routing_layers):
            self._log.warning("Routing layer %s out of range; resetting to 1", self.active_routing_layer)
            self.active_routing_layer = 1
        self._applier.apply((PROGRAM_VOLUME,), False, Transition.NONE)
        self._applier.apply(self._routing_layers, False, Transition.NONE)
        self._applier.apply((self._routing_layers[self.active_routing_layer - 1],), True, Transition.FADE)
        self._interlock_routing()

    def _interlock_routing(self) -> None:
        for index, button in enumerate(self._surface.routing_buttons, start=1):
            if button is not None:
                button.boolean = index == self.active_routing_layer

    # ------------------------------------------------------------------ #
    # Power sequencing                                                   #
    # ------------------------------------------------------------------ #

    def start_system(self) -> None:
        self._bridge.power_on()
        self._start_sequence(True)
        self.preempt_layer(MainLayer.WARMING, "system start")

    def show_shutdown_confirm(self) -> None:
        self._applier.apply((SHUTDOWN_CONFIRM,), True, Transition.FADE)
        self._log.info("Shutdown confirmation shown")

    def cancel_shutdown(self) -> None:
        self._applier.apply((SHUTDOWN_CONFIRM,), False, Transition.FADE)
        self._log.info("Shutdown cancelled")

    def confirm_shutdown(self) -> None:
        self._applier.apply((SHUTDOWN_CONFIRM,), False, Transition.FADE)
        self._bridge.power_off()
        self._start_sequence(False)
        self.preempt_layer(MainLayer.COOLING, "system shutdown")

    def _start_sequence(self, powering_on: bool) -> bool:
        if self._sequencer.is_animating:
            self._log.debug("Progress bar already running; not restarting")
            return False
        duration = self._bridge.get_timing(powering_on)
        return self._sequencer.start(powering_on, duration, self._on_sequence_complete)

    def _checked_post_warmup(self, layer: int) -> MainLayer:
        target = MainLayer(layer)
        allowed = self._policy.allowed_targets(MainLayer.WARMING)
        if allowed is not None and int(target) not in allowed:
            raise ValueError(f"Layer {target.display_name} cannot follow the warmup (allowed: {sorted(allowed)})")
        return target

    def _completion_target(self, powering_on: bool) -> MainLayer:
        # A bar outliving a reversed power command ends the phase now on screen.
        shown = self._alarm_return if self._alarm_return is not None else self.active_layer
        if shown is MainLayer.WARMING:
            powering_on = True
        elif shown is MainLayer.COOLING:
            powering_on = False
        return self._post_warmup_layer if powering_on else MainLayer.START

    def _on_sequence_complete(self, powering_on: bool) -> None:
        target = self._completion_target(powering_on)
        if self._alarm_return is not None:
            self._log.info("Progress complete during fire alarm; will return to %s", target.display_name)
            self._alarm_return = target
            return
        if self.active_layer is target:
            self.refresh()
            return
        self.request_layer(target)

    # ------------------------------------------------------------------ #
    # External signals                                                   #
    # ------------------------------------------------------------------ #

    def on_preempting_signal(self, signal: str, value: bool) -> None:
        """USB, off-hook and HDMI-active pins bypass the transition table."""

        target = PREEMPTING_SIGNALS[signal]
        if not value:
            self.refresh()
            return
        if self._alarm_return is not None:
            self._log.info("%s during fire alarm; will return to %s", signal, target.display_name)
            self._alarm_return = target
            return
        self.preempt_layer(target, signal)

    def on_fire_alarm(self, active: bool) -> None:
        if active:
            if self._alarm_return is None:
                self._alarm_return = self.active_layer
            self._log.warning("Fire alarm active")
            self.preempt_layer(MainLayer.ALARM, "fire alarm")
            return
        if self._alarm_return is None:
            return
        restore, self._alarm_return = self._alarm_return, None
        self._log.info("Fire alarm cleared")
        if self.active_layer is MainLayer.ALARM:
            self.preempt_layer(restore, "fire alarm cleared")

    def on_sublayer_signal(self, signal: str) -> List[str]:
        return self._rules.apply_for_signal(signal, self.active_layer)

    def on_help(self, signal: str) -> List[str]:
        return self._rules.apply_for_signal(signal, self.active_layer)

    # ------------------------------------------------------------------ #
    # Legends                                                            #
    # ------------------------------------------------------------------ #

    def update_legends(self) -> None:
        for legend, label in zip(self._surface.legends, self._surface.label_variables):
            legend.legend = label.string
        self._log.debug("Legends updated (%d)", len(self._surface.legends))

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    def initialize(self) -> None:
        self._surface.missing(required_controls(len(self._surface.nav_buttons)))
        status = self._bridge.status()
        if status is None:
            layer = MainLayer.START
            self._log.info("Room automation not available; starting on Start layer")
        else:
            layer = self._layer_for_status(status)
            self._log.info("Synchronised with room automation state (%s)", layer.display_name)
        self._hide_nav_buttons()
        self.preempt_layer(layer, "initialize")
        self.update_legends()
        self._applier.initialized = True
        self._log.info("Panel initialised")

    def apply_settings(self, settings: PanelSettings) -> None:
        """Take over the runtime-adjustable settings. They show on the next render or ``reinitialize``."""

        post_warmup = self._checked_post_warmup(settings.post_warmup_layer)
        for index in self._hidden_nav_indices:
            button = self._surface.nav_button(index)
            if button is not None:
                button.visible = True
        self._default_active_layer = MainLayer(settings.default_active_layer)
        self._post_warmup_layer = post_warmup
        self._hidden_nav_indices = tuple(settings.hidden_nav_indices)
        self.active_routing_layer = settings.default_routing_layer
        self._bridge.set_page_timing(settings.warmup_seconds, settings.cooldown_seconds)
        self._log.info("Runtime settings applied")

    def reinitialize(self) -> None:
        self._log.info("Reinitialising panel")
        self._applier.reset()
        self.initialize()

    def cleanup(self) -> None:
        self._sequencer.stop()
        self._listeners.clear()
        self._log.info("Panel cleaned up")

    def _hide_nav_buttons(self) -> None:
        for index in self._hidden_nav_indices:
            button = self._surface.nav_button(index)
            if button is None:
                self._log.warning("Cannot hide navigation button %s; control not found", index)
                continue
            button.visible = False
            self._log.debug("Hidden navigation button: btnNav%02d", index)

    def _layer_for_status(self, status: AutomationStatus) -> MainLayer:
        """Map automation flags onto a layer, starting the progress bar for transient phases."""

        if not status.powered:
            return MainLayer.START
        if status.warming:
            self._start_sequence(True)
            return MainLayer.WARMING
        if status.cooling:
            self._start_sequence(False)
            return MainLayer.COOLING
        return self._default_active_layer

    def sync_with_automation(self) -> bool:
        """Follow the automation controller's power phase. Returns True if the layer changed."""

        if self._alarm_return is not None or self._sequencer.is_animating:
            return False
        try:
            status = self._bridge.status()
            if status is None:
                return False
            wanted = "off"
            if status.powered:
                wanted = "warming" if status.warming else "cooling" if status.cooling else "on"
            if wanted == _power_phase(self.active_layer):
                return False
            self.preempt_layer(self._layer_for_status(status), "automation sync")
        except Exception as exc:  # pragma: no cover - defensive
            self._log.warning("Failed to sync with room automation: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------ #
    # Listeners                                                          #
    # ------------------------------------------------------------------ #

    def add_listener(self, listener: LayerListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: LayerListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            self._log.debug("Listener %r was not registered", listener)

    def _notify(self, change: LayerChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as exc:
                self._log.warning("Failed to notify layer listener %r: %s", listener, exc)

    # ------------------------------------------------------------------ #
    # Reporting                                                          #
    # ------------------------------------------------------------------ #

    def snapshot(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "active_layer": int(self.active_layer),
            "active_layer_name": self.active_layer.display_name,
            "active_routing_layer": self.active_routing_layer,
            "fire_alarm_active": self.fire_alarm_active,
            "initialized": self.initialized,
            "sequencer": self._sequencer.state.to_dict(),
            "visible_layers": self._applier.visible_layers(),
            "nav_buttons": [bool(button and button.boolean) for button in self._surface.nav_buttons],
            "routing_buttons": [bool(button and button.boolean) for button in self._surface.routing_buttons],
        }
