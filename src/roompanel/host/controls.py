"""UI-bound controls and the typed control surface of one panel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[["Control"], None]

NAV_BUTTON_COUNT = 12
ROUTING_BUTTON_COUNT = 5

NAV_LEGEND_NAMES = [f"txtNav{i:02d}" for i in range(1, NAV_BUTTON_COUNT + 1)] + [
    "txtNavShutdown",
    "txtRoomName",
    "txtRoomNameStart",
    "txtRoutingRooms",
    *[f"txtRouting{i:02d}" for i in range(1, ROUTING_BUTTON_COUNT + 1)],
    "txtRoutingSources",
]

SYSTEM_BUTTONS = ("btnStartSystem", "btnNavShutdown", "btnShutdownCancel", "btnShutdownConfirm")

HELP_BUTTONS = {
    "laptop": "btnHelpLaptop",
    "pc": "btnHelpPC",
    "wireless": "btnHelpWireless",
    "routing": "btnHelpRouting",
    "dialer": "btnHelpDialer",
    "stream_music": "btnHelpStreamMusic",
}

# Signal name -> control name of the pin feeding it.
SIGNAL_PINS = {
    "usb_laptop": "pinLEDUSBLaptop",
    "usb_pc": "pinLEDUSBPC",
    "off_hook_laptop": "pinLEDOffHookLaptop",
    "off_hook_pc": "pinLEDOffHookPC",
    "hdmi01_active": "pinLEDHDMI01Active",
    "hdmi02_active": "pinLEDHDMI02Active",
    "hdmi01_connect": "pinLEDHDMI01Connect",
    "hdmi02_connect": "pinLEDHDMI02Connect",
    "preset_saved": "pinLEDPresetSaved",
    "acpr_bypass": "pinLEDACPRBypassActive",
    "call_active": "pinCallActive",
    "fire_alarm": "ledFireAlarm",
}

PROGRESS_KNOB = "knbProgressBar"
PROGRESS_TEXT = "txtProgressBar"
SYSTEM_POWER_SWITCH = "btnSystemOnOff"


def label_variable_name(legend: str) -> str:
    """Map a legend control name onto the user label variable feeding it."""

    return "txtLabel" + legend[len("txt"):]


@dataclass(eq=False)
class Control:
    """A named UI value. Programmatic writes never fire the event handler."""

    name: str
    boolean: bool = False
    value: float = 0.0
    string: str = ""
    legend: str = ""
    visible: bool = True
    event_handler: Optional[EventHandler] = None

    def set_from_ui(self, *, boolean: Optional[bool] = None, value: Optional[float] = None,
                    string: Optional[str] = None) -> None:
        """Apply a change coming from the user or a wired pin and notify the handler."""

        if boolean is not None:
            self.boolean = bool(boolean)
        if value is not None:
            self.value = float(value)
        if string is not None:
            self.string = string
        if self.event_handler is not None:
            self.event_handler(self)

    def press(self) -> None:
        """Momentary press from the touch panel."""

        self.set_from_ui(boolean=True)


@dataclass
class ControlSurface:
    """All controls of one panel, indexed once at construction."""

    controls: Dict[str, Control] = field(default_factory=dict)
    nav_count: int = NAV_BUTTON_COUNT
    routing_count: int = ROUTING_BUTTON_COUNT

    def __post_init__(self) -> None:
        self.nav_buttons: List[Optional[Control]] = [
            self.controls.get(f"btnNav{i:02d}") for i in range(1, self.nav_count + 1)
        ]
        self.routing_buttons: List[Optional[Control]] = [
            self.controls.get(f"btnRouting{i:02d}") for i in range(1, self.routing_count + 1)
        ]
        self.legends: List[Control] = []
        self.label_variables: List[Control] = []
        for legend_name in NAV_LEGEND_NAMES:
            legend = self.controls.get(legend_name)
            label = self.controls.get(label_variable_name(legend_name))
            if legend is not None and label is not None:
                self.legends.append(legend)
                self.label_variables.append(label)

    @classmethod
    def standard(cls, *, omit: Iterable[str] = ()) -> "ControlSurface":
        """Build the full control set of a room panel, minus ``omit``."""

        names: List[str] = [f"btnNav{i:02d}" for i in range(1, NAV_BUTTON_COUNT + 1)]
        names += [f"btnRouting{i:02d}" for i in range(1, ROUTING_BUTTON_COUNT + 1)]
        names += list(SYSTEM_BUTTONS)
        names += list(HELP_BUTTONS.values())
        names += list(SIGNAL_PINS.values())
        names += NAV_LEGEND_NAMES
        names += [label_variable_name(legend) for legend in NAV_LEGEND_NAMES]
        names += [PROGRESS_KNOB, PROGRESS_TEXT, SYSTEM_POWER_SWITCH]
        skipped = set(omit)
        return cls({name: Control(name) for name in names if name not in skipped})

    def get(self, name: str) -> Optional[Control]:
        return self.controls.get(name)

    def __getitem__(self, name: str) -> Control:
        return self.controls[name]

    def __contains__(self, name: object) -> bool:
        return name in self.controls

    def nav_button(self, index: int) -> Optional[Control]:
        if 1 <= index <= len(self.nav_buttons):
            return self.nav_buttons[index - 1]
        return None

    def routing_button(self, index: int) -> Optional[Control]:
        if 1 <= index <= len(self.routing_buttons):
            return self.routing_buttons[index - 1]
        return None

    def signal(self, name: str) -> bool:
        """Current boolean of a signal pin or help button; missing controls read as False."""

        control_name = SIGNAL_PINS.get(name) or HELP_BUTTONS.get(name.removeprefix("help_"), name)
        control = self.controls.get(control_name)
        return bool(control and control.boolean)

    def missing(self, required: Iterable[str]) -> List[str]:
        """Return required control names absent from this surface, logging the outcome."""

        absent = [name for name in required if name not in self.controls]
        if absent:
            logger.warning("Missing required controls: %s", ", ".join(absent))
        else:
            logger.debug("All required controls present")
        return absent


def required_controls(nav_count: int = NAV_BUTTON_COUNT) -> List[str]:
    """Controls a panel cannot navigate without."""

    return [f"btnNav{i:02d}" for i in range(1, nav_count + 1)] + list(SYSTEM_BUTTONS) + list(HELP_BUTTONS.values())
