from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Set

import pytest

import roompanel.config as config
from roompanel.config import PanelSettings
from roompanel.host import (
    Component,
    ComponentDirectory,
    ControlSurface,
    InMemoryPresentationHost,
    register_controller,
    unregister_controller,
)
from roompanel.host.controls import SIGNAL_PINS, SYSTEM_POWER_SWITCH, label_variable_name
from roompanel.navigation import MainLayer, NavigationStateMachine, PanelSession, create_panel
from roompanel.navigation.layers import DEFAULT_ROUTING_LAYERS, MAIN_SURFACES, all_layers
from roompanel.navigation.session import clear_current_panel
from roompanel.runtime import ManualScheduler, SimulatedRoomAutomation

PAGE = "UCI MPR(005)"


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in ("ROOMPANEL_PAGE_NAME", "ROOMPANEL_HIDDEN_NAV_INDICES", "ROOMPANEL_ROUTING_LAYERS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "RUNTIME_CONFIG_PATH", tmp_path / "runtime.json")
    monkeypatch.setattr(config, "_SETTINGS", None)
    unregister_controller()
    clear_current_panel()
    yield
    unregister_controller()
    clear_current_panel()


def make_host(page: str = PAGE, routing_layers: Iterable[str] = DEFAULT_ROUTING_LAYERS) -> InMemoryPresentationHost:
    layers = set(all_layers(tuple(routing_layers)))
    return InMemoryPresentationHost.with_page(page, layers | set(MAIN_SURFACES.values()))


@dataclass
class PanelHarness:
    scheduler: ManualScheduler
    host: InMemoryPresentationHost
    surface: ControlSurface
    directory: ComponentDirectory
    session: PanelSession
    automation: Optional[SimulatedRoomAutomation] = None

    @property
    def machine(self) -> NavigationStateMachine:
        return self.session.machine

    def visible(self) -> Set[str]:
        return self.host.visible_layers(self.session.page)

    def lit_nav_buttons(self) -> list[int]:
        return [index for index, button in enumerate(self.surface.nav_buttons, start=1) if button.boolean]

    def lit_routing_buttons(self) -> list[int]:
        return [index for index, button in enumerate(self.surface.routing_buttons, start=1) if button.boolean]

    def signal(self, name: str, value: bool) -> None:
        self.surface[SIGNAL_PINS[name]].set_from_ui(boolean=value)


@pytest.fixture()
def make_panel() -> Callable[..., PanelHarness]:
    def factory(
        *,
        automation: bool = False,
        local_power_switch: bool = True,
        components: Iterable[Component] = (),
        start: bool = True,
        powered: bool = False,
        **overrides,
    ) -> PanelHarness:
        scheduler = ManualScheduler()
        settings = PanelSettings(**overrides)
        host = make_host(settings.page_name, settings.routing_layers)
        omit = () if local_power_switch else (SYSTEM_POWER_SWITCH,)
        surface = ControlSurface.standard(omit=omit)
        for layer in MainLayer:
            surface[label_variable_name(f"txtNav{int(layer):02d}")].string = layer.display_name
        directory = ComponentDirectory()
        directory.extend(components)

        simulated = None
        if automation:
            simulated = SimulatedRoomAutomation(scheduler, warmup_time=10.0, cooldown_time=5.0)
            register_controller(simulated)
            if powered:
                simulated.power_on()
                scheduler.advance(simulated.warmup_time)

        session = create_panel(settings, host, surface, directory, scheduler)
        if start:
            session.start()
        return PanelHarness(scheduler, host, surface, directory, session, simulated)

    return factory
