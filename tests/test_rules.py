from itertools import combinations
from typing import Dict

import pytest

from roompanel.host import HostAdapter, InMemoryPresentationHost
from roompanel.navigation import DEFAULT_RULES, LayerVisibilityApplier, MainLayer, RoutingSubLayerRules
from roompanel.navigation.layers import ALL_LAYERS

PAGE = "UCI MPR(005)"


@pytest.fixture()
def host() -> InMemoryPresentationHost:
    return InMemoryPresentationHost.with_page(PAGE, ALL_LAYERS)


@pytest.fixture()
def signals() -> Dict[str, bool]:
    return {}


@pytest.fixture()
def rules(host, signals) -> RoutingSubLayerRules:
    applier = LayerVisibilityApplier(HostAdapter(host, PAGE))
    return RoutingSubLayerRules(applier, lambda name: signals.get(name, False))


@pytest.mark.parametrize("layer", list(MainLayer))
def test_rules_active_on_one_layer_own_disjoint_layers(layer: MainLayer) -> None:
    active = [rule for rule in DEFAULT_RULES if rule.applies_to(layer)]
    for first, second in combinations(active, 2):
        assert not first.owned & second.owned, (first.name, second.name)


def test_camera_controls_follow_usb(rules, host, signals) -> None:
    signals["usb_laptop"] = True
    assert rules.apply("camera_laptop", MainLayer.LAPTOP)
    assert host.visible_layers(PAGE) == {"J05-CameraControls"}

    signals["usb_laptop"] = False
    rules.apply("camera_laptop", MainLayer.LAPTOP)
    assert host.visible_layers(PAGE) == {"J01-ConnectUSBLaptop"}


def test_help_overlay_suppresses_camera_controls(rules, host, signals) -> None:
    signals.update(usb_pc=True, help_pc=True)
    assert rules.apply_for_signal("help_pc", MainLayer.PC) == ["camera_pc", "help_pc"]
    assert host.visible_layers(PAGE) == {"I03-HelpPC"}

    signals["help_pc"] = False
    rules.apply_for_signal("help_pc", MainLayer.PC)
    assert host.visible_layers(PAGE) == {"J05-CameraControls"}


def test_order_of_evaluation_does_not_matter(host, signals) -> None:
    signals.update(usb_laptop=True, hdmi01_connect=True, preset_saved=True, call_active=True)
    names = ["hdmi01_connect", "camera_laptop", "preset_saved", "acpr_bypass", "help_laptop", "call_active"]
    results = []
    for order in (names, list(reversed(names))):
        scratch = InMemoryPresentationHost.with_page(PAGE, ALL_LAYERS)
        rules = RoutingSubLayerRules(
            LayerVisibilityApplier(HostAdapter(scratch, PAGE)), lambda name: signals.get(name, False)
        )
        for name in order:
            rules.apply(name, MainLayer.LAPTOP)
        results.append(scratch.visible_layers(PAGE))
    assert results[0] == results[1] == {
        "L05-Laptop",
        "J05-CameraControls",
        "J04-CamPresetSaved",
        "J03-ACPRActive",
        "I01-CallActive",
    }


def test_scoped_rule_ignored_on_other_layers(rules, host, signals) -> None:
    signals["hdmi02_connect"] = True
    assert rules.apply("hdmi02_connect", MainLayer.LAPTOP) is False
    assert rules.apply_for_signal("hdmi02_connect", MainLayer.ROUTING) == []
    assert host.calls == []


def test_acpr_banner_hidden_while_bypassed(rules, host, signals) -> None:
    rules.apply("acpr_bypass", MainLayer.PC)
    assert host.is_visible(PAGE, "J03-ACPRActive")
    signals["acpr_bypass"] = True
    rules.apply("acpr_bypass", MainLayer.PC)
    assert not host.is_visible(PAGE, "J03-ACPRActive")


def test_unknown_rule(rules) -> None:
    assert "nonexistent" not in rules
    assert rules.apply("nonexistent", MainLayer.LAPTOP) is False
    assert "call_active" in rules
    assert rules.get("call_active").signal == "call_active"
