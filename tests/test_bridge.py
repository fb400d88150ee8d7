import logging

import pytest

from roompanel.host import Component, ComponentDirectory, ControlSurface, register_controller
from roompanel.host.controls import SYSTEM_POWER_SWITCH
from roompanel.navigation import ExternalAutomationBridge, component_name_for_page
from roompanel.navigation.bridge import FALLBACK_TIMING_SECONDS
from roompanel.runtime import ManualScheduler, SimulatedRoomAutomation

PAGE = "UCI MPR(005)"


@pytest.fixture()
def bare_surface() -> ControlSurface:
    return ControlSurface.standard(omit=(SYSTEM_POWER_SWITCH,))


@pytest.fixture()
def automation() -> SimulatedRoomAutomation:
    controller = SimulatedRoomAutomation(ManualScheduler(), warmup_time=12.0, cooldown_time=4.0)
    register_controller(controller)
    return controller


def make_bridge(surface: ControlSurface, *components: Component, **kwargs) -> ExternalAutomationBridge:
    directory = ComponentDirectory()
    directory.extend(components)
    return ExternalAutomationBridge(PAGE, surface, directory, **kwargs)


@pytest.mark.parametrize(
    ("page", "expected"),
    [
        ("UCI MPR(005)", "compRoomControlsMPR"),
        ("UCI MPR (005)", "compRoomControlsMPR"),
        ("UCI Board Room(012)", "compRoomControlsBoardRoom"),
        ("Lobby Display", None),
    ],
)
def test_component_name_for_page(page: str, expected) -> None:
    assert component_name_for_page(page) == expected


def test_power_uses_component_first(bare_surface, automation) -> None:
    component = Component.with_controls("compRoomControlsMPR", btnSystemOnOff=False)
    bridge = make_bridge(bare_surface, component)
    assert bridge.power_on()
    assert component.controls[SYSTEM_POWER_SWITCH].boolean is True
    assert not automation.is_warming
    assert bridge.power_off()
    assert component.controls[SYSTEM_POWER_SWITCH].boolean is False


def test_power_falls_back_to_local_switch(automation, caplog: pytest.LogCaptureFixture) -> None:
    surface = ControlSurface.standard()
    bridge = make_bridge(surface)
    with caplog.at_level(logging.INFO, logger="roompanel"):
        assert bridge.power_on()
    assert surface[SYSTEM_POWER_SWITCH].boolean is True
    assert not automation.is_powered
    assert "via direct control" in caplog.text


def test_power_falls_back_to_registered_controller(bare_surface, automation) -> None:
    bridge = make_bridge(bare_surface)
    assert bridge.power_on()
    assert automation.is_powered and automation.is_warming


def test_power_without_any_path_returns_false(bare_surface, caplog: pytest.LogCaptureFixture) -> None:
    bridge = make_bridge(bare_surface)
    with caplog.at_level(logging.WARNING, logger="roompanel"):
        assert bridge.power_on() is False
    assert "no path available" in caplog.text


def test_explicit_component_name_wins(bare_surface) -> None:
    component = Component.with_controls("compLectern", warmupTime=3.0)
    bridge = make_bridge(bare_surface, component, component_name="compLectern")
    assert bridge.component is component
    assert bridge.get_timing(True) == 3.0


@pytest.mark.parametrize(
    ("controls", "is_warmup", "expected"),
    [
        ({"warmupTime": 15.0}, True, 15.0),
        ({"WarmupTime": 18.0}, True, 18.0),
        ({"cooldownTime": 6.0}, False, 6.0),
        ({"CooldownTime": 9.0}, False, 9.0),
        ({}, True, 10.0),
        ({}, False, 5.0),
    ],
)
def test_component_timing(bare_surface, automation, controls, is_warmup, expected) -> None:
    component = Component.with_controls("compRoomControlsMPR", **controls)
    bridge = make_bridge(bare_surface, component, page_warmup=99.0, page_cooldown=99.0)
    assert bridge.get_timing(is_warmup) == expected


def test_page_timing_precedes_controller(bare_surface, automation) -> None:
    bridge = make_bridge(bare_surface, page_warmup=20.0, page_cooldown=8.0)
    assert bridge.get_timing(True) == 20.0
    assert bridge.get_timing(False) == 8.0


def test_controller_timing(bare_surface, automation) -> None:
    bridge = make_bridge(bare_surface)
    assert bridge.get_timing(True) == 12.0
    assert bridge.get_timing(False) == 4.0


def test_timing_default(bare_surface) -> None:
    bridge = make_bridge(bare_surface)
    assert bridge.get_timing(True) == FALLBACK_TIMING_SECONDS == 7.0
    assert bridge.get_timing(False) == 7.0


def test_status_reflects_controller(bare_surface, automation) -> None:
    bridge = make_bridge(bare_surface)
    assert bridge.status().powered is False
    automation.power_on()
    status = bridge.status()
    assert status.powered and status.warming and not status.cooling


def test_status_without_controller(bare_surface) -> None:
    assert make_bridge(bare_surface).status() is None
