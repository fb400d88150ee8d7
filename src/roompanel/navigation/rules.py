"""Signal-driven sub-layer rules consulted while a main layer is shown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..host.base import Transition
from ..logger import get_logger
from .layers import CAMERA_CONTROLS, MainLayer
from .visibility import LayerVisibilityApplier

logger = get_logger(__name__)

SignalReader = Callable[[str], bool]


@dataclass(frozen=True)
class LayerAction:
    show: Tuple[str, ...] = ()
    hide: Tuple[str, ...] = ()
    transition: Transition = Transition.FADE


@dataclass(frozen=True)
class SubLayerRule:
    """``signal`` selects ``when_true`` or ``when_false``; a true ``gate`` hides everything the rule owns."""

    name: str
    signal: str
    when_true: LayerAction
    when_false: LayerAction
    scope: Optional[FrozenSet[MainLayer]] = None
    gate: Optional[str] = None

    @property
    def owned(self) -> FrozenSet[str]:
        return frozenset(
            self.when_true.show + self.when_true.hide + self.when_false.show + self.when_false.hide
        )

    def watches(self, signal: str) -> bool:
        return signal in (self.signal, self.gate)

    def applies_to(self, layer: MainLayer) -> bool:
        return self.scope is None or layer in self.scope


def _toggle(name: str, signal: str, layer: str, transition: Transition = Transition.FADE) -> SubLayerRule:
    return SubLayerRule(
        name=name,
        signal=signal,
        when_true=LayerAction(show=(layer,), transition=transition),
        when_false=LayerAction(hide=(layer,)),
    )


_LAPTOP = frozenset({MainLayer.LAPTOP})
_PC = frozenset({MainLayer.PC})

DEFAULT_RULES: Tuple[SubLayerRule, ...] = (
    _toggle("call_active", "call_active", "I01-CallActive"),
    _toggle("preset_saved", "preset_saved", "J04-CamPresetSaved"),
    SubLayerRule(
        name="hdmi01_connect",
        signal="hdmi01_connect",
        when_true=LayerAction(show=("L05-Laptop",), hide=("L01-HDMI01Disconnected",)),
        when_false=LayerAction(show=("L01-HDMI01Disconnected",), hide=("L05-Laptop",)),
        scope=_LAPTOP,
    ),
    SubLayerRule(
        name="hdmi02_connect",
        signal="hdmi02_connect",
        when_true=LayerAction(show=("P05-PC",), hide=("P01-HDMI02Disconnected",)),
        when_false=LayerAction(show=("P01-HDMI02Disconnected",), hide=("P05-PC",)),
        scope=_PC,
    ),
    # Bypass active means the camera is under manual control; the banner shows otherwise.
    # Only the banner is driven here. J05-CameraControls stays with the camera rules,
    # so with bypass off the banner and the camera controls can show together.
    SubLayerRule(
        name="acpr_bypass",
        signal="acpr_bypass",
        when_true=LayerAction(hide=("J03-ACPRActive",)),
        when_false=LayerAction(show=("J03-ACPRActive",)),
        scope=_LAPTOP | _PC,
    ),
    SubLayerRule(
        name="camera_laptop",
        signal="usb_laptop",
        when_true=LayerAction(show=(CAMERA_CONTROLS,), hide=("J01-ConnectUSBLaptop", "J02-ConnectUSBPC")),
        when_false=LayerAction(show=("J01-ConnectUSBLaptop",), hide=(CAMERA_CONTROLS, "J02-ConnectUSBPC")),
        scope=_LAPTOP,
        gate="help_laptop",
    ),
    SubLayerRule(
        name="camera_pc",
        signal="usb_pc",
        when_true=LayerAction(show=(CAMERA_CONTROLS,), hide=("J01-ConnectUSBLaptop", "J02-ConnectUSBPC")),
        when_false=LayerAction(show=("J02-ConnectUSBPC",), hide=(CAMERA_CONTROLS, "J01-ConnectUSBLaptop")),
        scope=_PC,
        gate="help_pc",
    ),
    _toggle("help_laptop", "help_laptop", "I02-HelpLaptop"),
    _toggle("help_pc", "help_pc", "I03-HelpPC"),
    _toggle("help_wireless", "help_wireless", "I04-HelpWireless", Transition.NONE),
    _toggle("help_routing", "help_routing", "I05-HelpRouting", Transition.NONE),
    _toggle("help_dialer", "help_dialer", "I06-HelpDialer", Transition.NONE),
    _toggle("help_stream_music", "help_stream_music", "I07-HelpStreamMusic", Transition.NONE),
)


class RoutingSubLayerRules:
    """Named rule table evaluated against live signals."""

    def __init__(
        self,
        applier: LayerVisibilityApplier,
        signals: SignalReader,
        rules: Iterable[SubLayerRule] = DEFAULT_RULES,
    ):
        self._applier = applier
        self._signals = signals
        self._rules: Dict[str, SubLayerRule] = {}
        for rule in rules:
            if rule.name in self._rules:
                logger.warning("Replacing sub-layer rule: %s", rule.name)
            self._rules[rule.name] = rule

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def get(self, name: str) -> SubLayerRule:
        return self._rules[name]

    def names(self) -> List[str]:
        return list(self._rules)

    def apply(self, name: str, active_layer: MainLayer) -> bool:
        """Evaluate one rule; returns False when it does not apply to ``active_layer``."""

        rule = self._rules.get(name)
        if rule is None:
            logger.warning("Unknown sub-layer rule requested: %s", name)
            return False
        if not rule.applies_to(active_layer):
            logger.debug("Rule %s ignored on %s layer", name, active_layer.display_name)
            return False
        if rule.gate is not None and self._signals(rule.gate):
            self._applier.apply(sorted(rule.owned), False, Transition.NONE)
            logger.debug("Rule %s suppressed by %s", name, rule.gate)
            return True
        state = self._signals(rule.signal)
        action = rule.when_true if state else rule.when_false
        self._applier.apply(action.show, True, action.transition)
        self._applier.apply(action.hide, False, Transition.NONE)
        logger.debug("Rule %s: %s=%s show=%s hide=%s", name, rule.signal, state, action.show, action.hide)
        return True

    def apply_for_signal(self, signal: str, active_layer: MainLayer) -> List[str]:
        """Re-evaluate every rule watching ``signal``. Returns the names applied."""

        applied = [
            rule.name for rule in self._rules.values() if rule.watches(signal) and self.apply(rule.name, active_layer)
        ]
        if not applied:
            logger.debug("Signal %s changed; no rule applies on %s", signal, active_layer.display_name)
        return applied
