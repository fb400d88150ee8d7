import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from roompanel.server.app import create_application


@pytest.fixture()
def client() -> TestClient:
    app = create_application()
    with TestClient(app) as test_client:
        yield test_client


def test_create_application() -> None:
    app = create_application()
    assert app.title == "RoomPanel API"
    paths = {route.path for route in app.routes}
    assert {"/", "/api/panel", "/api/nav/{index}", "/api/signals/{name}"} <= paths


def test_summary(client: TestClient) -> None:
    payload = client.get("/").json()
    assert payload["name"] == "RoomPanel"
    assert payload["page"] == "UCI MPR(005)"
    assert payload["active_layer"] == "Start"


def test_panel_state_after_startup(client: TestClient) -> None:
    response = client.get("/api/panel")
    assert response.status_code == 200
    payload = response.json()
    assert payload["active_layer"] == 3
    assert payload["visible_layers"] == ["C05-Start"]
    assert payload["sync_running"] is True


def test_navigation_is_validated(client: TestClient) -> None:
    response = client.post("/api/nav/8")
    assert response.status_code == 200
    assert response.json()["accepted"] is False
    assert response.json()["panel"]["active_layer"] == 3


def test_navigation_unknown_layer(client: TestClient) -> None:
    assert client.post("/api/nav/13").status_code == 404


def test_start_system(client: TestClient) -> None:
    payload = client.post("/api/system/start").json()
    assert payload["panel"]["active_layer"] == 4
    assert payload["panel"]["sequencer"]["is_animating"] is True
    assert payload["panel"]["sequencer"]["direction"] == "powering-on"
    assert client.app.state.automation.is_warming


def test_shutdown_flow(client: TestClient) -> None:
    client.put("/api/signals/usb_laptop", json={"value": True})
    shown = client.post("/api/system/shutdown").json()
    assert "D01-ShutdownConfirm" in shown["panel"]["visible_layers"]
    cancelled = client.post("/api/system/shutdown/cancel").json()
    assert "D01-ShutdownConfirm" not in cancelled["panel"]["visible_layers"]

    confirmed = client.post("/api/system/shutdown/confirm").json()
    assert confirmed["panel"]["active_layer"] == 5


def test_signal_preempts_layer(client: TestClient) -> None:
    response = client.put("/api/signals/off_hook_pc", json={"value": True})
    assert response.status_code == 200
    assert response.json()["panel"]["active_layer"] == 7


def test_unknown_signal(client: TestClient) -> None:
    response = client.put("/api/signals/smoke", json={"value": True})
    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown signal: smoke"


def test_malformed_signal_body(client: TestClient) -> None:
    assert client.put("/api/signals/usb_pc", json={}).status_code == 422


def test_help_overlay(client: TestClient) -> None:
    client.put("/api/signals/usb_pc", json={"value": True})
    payload = client.put("/api/help/pc", json={"value": True}).json()
    assert "I03-HelpPC" in payload["panel"]["visible_layers"]
    assert "J05-CameraControls" not in payload["panel"]["visible_layers"]
    assert client.put("/api/help/lobby", json={"value": True}).status_code == 404


def test_routing(client: TestClient) -> None:
    client.put("/api/signals/usb_laptop", json={"value": True})
    assert client.post("/api/nav/10").json()["accepted"] is True

    payload = client.post("/api/routing/2").json()
    assert payload["accepted"] is True
    assert payload["panel"]["routing_buttons"] == [False, True, False, False, False]
    assert "R02-Routing-WTerrace" in payload["panel"]["visible_layers"]

    assert client.post("/api/routing/9").json()["accepted"] is False


def test_labels(client: TestClient) -> None:
    response = client.put("/api/labels/txtNav08", json={"text": "Lectern"})
    assert response.status_code == 200
    assert response.json() == {"legend": "txtNav08", "text": "Lectern"}
    assert client.put("/api/labels/txtBogus", json={"text": "x"}).status_code == 404


def test_layer_registry(client: TestClient) -> None:
    layers = client.get("/api/layers").json()
    assert len(layers) == 12
    by_name = {entry["name"]: entry for entry in layers}
    assert by_name["Laptop"]["allowed_targets"] is None
    assert by_name["Start"]["allowed_targets"] == [1, 4, 5]
    assert by_name["Routing"]["callbacks"] == ["routing_view", "call_active"]


def test_reinitialize(client: TestClient) -> None:
    response = client.post("/api/panel/reinitialize")
    assert response.status_code == 200
    assert response.json()["panel"]["initialized"] is True


def test_read_configuration(client: TestClient) -> None:
    payload = client.get("/api/config").json()
    assert payload["page_name"] == "UCI MPR(005)"
    assert payload["default_active_layer"] == 8


def test_write_configuration(client: TestClient) -> None:
    response = client.put("/api/config", json={"warmup_seconds": 9, "hidden_nav_indices": [11]})
    assert response.status_code == 200
    payload = response.json()
    assert payload["warmup_seconds"] == 9.0
    assert payload["hidden_nav_indices"] == [11]
    assert "message" in payload


@pytest.mark.parametrize(
    "body",
    [
        {"hidden_nav_indices": [13]},
        {"default_active_layer": 0},
        {"cooldown_seconds": -1},
        {"post_warmup_layer": 6},
    ],
)
def test_write_configuration_rejects_invalid_values(client: TestClient, body) -> None:
    assert client.put("/api/config", json=body).status_code == 422


def test_configuration_applies_on_reinitialize(client: TestClient) -> None:
    client.put("/api/config", json={"hidden_nav_indices": [11], "warmup_seconds": 3})
    panel = client.app.state.panel
    assert panel.surface.nav_button(11).visible is True

    assert client.post("/api/panel/reinitialize").status_code == 200
    assert panel.surface.nav_button(11).visible is False
    assert panel.machine.bridge.get_timing(True) == 3.0

    payload = client.post("/api/system/start").json()
    assert payload["panel"]["sequencer"]["duration"] == 3.0
