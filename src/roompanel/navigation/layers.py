"""Static registry of panel layers and the per-layer show/hide configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Tuple


class MainLayer(IntEnum):
    """Mutually exclusive top-level views. Values match the navigation button numbers."""

    ALARM = 1
    INCOMING_CALL = 2
    START = 3
    WARMING = 4
    COOLING = 5
    ROOM_CONTROLS = 6
    PC = 7
    LAPTOP = 8
    WIRELESS = 9
    ROUTING = 10
    DIALER = 11
    STREAM_MUSIC = 12

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def coerce(cls, value: "int | MainLayer") -> "MainLayer | None":
        """Return the layer for ``value`` or ``None`` if it names no main layer."""

        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


_DISPLAY_NAMES = {
    MainLayer.ALARM: "Alarm",
    MainLayer.INCOMING_CALL: "Incoming Call",
    MainLayer.START: "Start",
    MainLayer.WARMING: "Warming",
    MainLayer.COOLING: "Cooling",
    MainLayer.ROOM_CONTROLS: "Room Controls",
    MainLayer.PC: "PC",
    MainLayer.LAPTOP: "Laptop",
    MainLayer.WIRELESS: "Wireless",
    MainLayer.ROUTING: "Routing",
    MainLayer.DIALER: "Dialer",
    MainLayer.STREAM_MUSIC: "Stream Music",
}

PROGRAM_VOLUME = "X01-ProgramVolume"
BASE_LAYERS: Tuple[str, ...] = (PROGRAM_VOLUME, "Y01-Navbar", "Z01-Base")
SHUTDOWN_CONFIRM = "D01-ShutdownConfirm"
CAMERA_CONTROLS = "J05-CameraControls"

DEFAULT_ROUTING_LAYERS: Tuple[str, ...] = (
    "R01-Routing-Lobby",
    "R02-Routing-WTerrace",
    "R03-Routing-NTerraceWall",
    "R04-Routing-Garden",
    "R05-Routing-NTerraceFloor",
)

# Layers whose visibility marks which main view is on screen.
MAIN_SURFACES: Dict[MainLayer, str] = {
    MainLayer.ALARM: "A01-Alarm",
    MainLayer.INCOMING_CALL: "B01-IncomingCall",
    MainLayer.START: "C05-Start",
    MainLayer.WARMING: "E01-SystemProgressWarming",
    MainLayer.COOLING: "E02-SystemProgressCooling",
    MainLayer.ROOM_CONTROLS: "H01-RoomControls",
    MainLayer.PC: "P05-PC",
    MainLayer.LAPTOP: "L05-Laptop",
    MainLayer.WIRELESS: "W05-Wireless",
    MainLayer.ROUTING: "R10-Routing",
    MainLayer.DIALER: "V05-Dialer",
    MainLayer.STREAM_MUSIC: "S05-StreamMusic",
}

# Every layer hidden at the start of a render, in host call order.
ALL_LAYERS: Tuple[str, ...] = (
    "A01-Alarm",
    "B01-IncomingCall",
    "C05-Start",
    SHUTDOWN_CONFIRM,
    "E01-SystemProgressWarming",
    "E02-SystemProgressCooling",
    "E05-SystemProgress",
    "H01-RoomControls",
    "I01-CallActive",
    "I02-HelpLaptop",
    "I03-HelpPC",
    "I04-HelpWireless",
    "I05-HelpRouting",
    "I06-HelpDialer",
    "I07-HelpStreamMusic",
    "J01-ConnectUSBLaptop",
    "J02-ConnectUSBPC",
    "J03-ACPRActive",
    "J04-CamPresetSaved",
    CAMERA_CONTROLS,
    "L01-HDMI01Disconnected",
    "L05-Laptop",
    "P01-HDMI02Disconnected",
    "P05-PC",
    "W05-Wireless",
    *DEFAULT_ROUTING_LAYERS,
    "R10-Routing",
    "S05-StreamMusic",
    "V05-Dialer",
    *BASE_LAYERS,
)

HIDE_BASE = "hide_base_layers"
ROUTING_VIEW = "routing_view"


@dataclass(frozen=True)
class LayerConfig:
    """What entering a main layer shows, hides and then runs, in that order."""

    show: Tuple[str, ...] = ()
    hide: Tuple[str, ...] = ()
    callbacks: Tuple[str, ...] = ()


LAYER_CONFIGS: Dict[MainLayer, LayerConfig] = {
    MainLayer.ALARM: LayerConfig(show=("A01-Alarm",), callbacks=(HIDE_BASE,)),
    MainLayer.INCOMING_CALL: LayerConfig(show=("B01-IncomingCall",)),
    MainLayer.START: LayerConfig(show=("C05-Start",), callbacks=(HIDE_BASE,)),
    MainLayer.WARMING: LayerConfig(
        show=("E05-SystemProgress", "E01-SystemProgressWarming"),
        callbacks=(HIDE_BASE,),
    ),
    MainLayer.COOLING: LayerConfig(
        show=("E05-SystemProgress", "E02-SystemProgressCooling"),
        callbacks=(HIDE_BASE,),
    ),
    MainLayer.ROOM_CONTROLS: LayerConfig(
        show=("H01-RoomControls",),
        hide=(PROGRAM_VOLUME,),
        callbacks=("call_active",),
    ),
    MainLayer.LAPTOP: LayerConfig(
        show=("L05-Laptop",),
        callbacks=("hdmi01_connect", "camera_laptop", "preset_saved", "acpr_bypass", "help_laptop", "call_active"),
    ),
    MainLayer.PC: LayerConfig(
        show=("P05-PC",),
        callbacks=("camera_pc", "preset_saved", "acpr_bypass", "help_pc", "call_active"),
    ),
    MainLayer.WIRELESS: LayerConfig(show=("W05-Wireless",), callbacks=("help_wireless", "call_active")),
    MainLayer.ROUTING: LayerConfig(show=("R10-Routing",), callbacks=(ROUTING_VIEW, "call_active")),
    MainLayer.DIALER: LayerConfig(show=("V05-Dialer",), callbacks=("help_dialer", "call_active")),
    MainLayer.STREAM_MUSIC: LayerConfig(
        show=("S05-StreamMusic",),
        callbacks=("help_stream_music", "call_active"),
    ),
}

# Main layer -> navigation button lit by the interlock.
LAYER_BUTTONS: Dict[MainLayer, int] = {layer: int(layer) for layer in MainLayer}

# Layers shown while the room is off.
IDLE_LAYERS = frozenset({MainLayer.START})


def all_layers(routing_layers: Tuple[str, ...] = DEFAULT_ROUTING_LAYERS) -> Tuple[str, ...]:
    """Hide-all list with the configured routing destinations substituted in."""

    if routing_layers == DEFAULT_ROUTING_LAYERS:
        return ALL_LAYERS
    fixed = tuple(name for name in ALL_LAYERS if name not in DEFAULT_ROUTING_LAYERS)
    index = fixed.index("R10-Routing")
    return fixed[:index] + tuple(routing_layers) + fixed[index:]
