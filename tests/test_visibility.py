import logging

import pytest

from roompanel.host import HostAdapter, InMemoryPresentationHost, Transition
from roompanel.navigation import LayerVisibilityApplier

PAGE = "UCI Test(001)"


@pytest.fixture()
def host() -> InMemoryPresentationHost:
    return InMemoryPresentationHost.with_page(PAGE, {"A01-Alarm", "C05-Start"})


@pytest.fixture()
def applier(host: InMemoryPresentationHost) -> LayerVisibilityApplier:
    return LayerVisibilityApplier(HostAdapter(host, PAGE))


def test_every_call_reaches_host_before_initialisation(host, applier) -> None:
    applier.set_visible("A01-Alarm", True)
    applier.set_visible("A01-Alarm", True)
    assert len(host.calls) == 2


def test_repeated_value_is_skipped_once_initialised(host, applier) -> None:
    applier.initialized = True
    assert applier.set_visible("A01-Alarm", True, Transition.FADE)
    assert applier.set_visible("A01-Alarm", True, Transition.FADE)
    assert [(call.layer, call.visible) for call in host.calls] == [("A01-Alarm", True)]

    applier.set_visible("A01-Alarm", False)
    assert [(call.layer, call.visible) for call in host.calls][-1] == ("A01-Alarm", False)
    assert len(host.calls) == 2


def test_transition_is_passed_through(host, applier) -> None:
    applier.show("C05-Start")
    applier.hide("A01-Alarm")
    assert [call.transition for call in host.calls] == [Transition.FADE, Transition.NONE]


def test_unknown_layer_returns_false_and_logs(host, applier, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="roompanel"):
        assert applier.set_visible("Q99-Missing", True) is False
    assert "Q99-Missing" in caplog.text
    assert applier.is_visible("Q99-Missing")
    assert host.calls == []


def test_unknown_page_never_raises(caplog: pytest.LogCaptureFixture) -> None:
    applier = LayerVisibilityApplier(HostAdapter(InMemoryPresentationHost(), "Nowhere"))
    with caplog.at_level(logging.WARNING, logger="roompanel"):
        assert applier.apply(["A01-Alarm", "C05-Start"], True) is False
    assert "does not exist" in caplog.text


def test_reset_forces_full_replay(host, applier) -> None:
    applier.initialized = True
    applier.show("C05-Start")
    applier.reset()
    assert not applier.initialized
    assert applier.visible_layers() == []
    applier.initialized = True
    applier.show("C05-Start")
    assert len(host.calls) == 2
