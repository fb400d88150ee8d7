"""API routes for the RoomPanel server."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field, ValidationError, field_validator

from .. import __version__
from ..config import MAIN_LAYER_COUNT, PERSISTED_FIELDS, get_settings, update_settings
from ..host.controls import HELP_BUTTONS, SIGNAL_PINS, label_variable_name
from ..logger import get_logger
from ..navigation import LAYER_CONFIGS, MainLayer, PanelSession, TransitionPolicy

router = APIRouter()
logger = get_logger(__name__)


class SignalPayload(BaseModel):
    value: bool


class LabelPayload(BaseModel):
    text: str = Field(default="", max_length=64)


class ConfigurationUpdateRequest(BaseModel):
    default_active_layer: Optional[int] = Field(default=None, ge=1, le=MAIN_LAYER_COUNT)
    post_warmup_layer: Optional[int] = Field(default=None, ge=1, le=MAIN_LAYER_COUNT)
    default_routing_layer: Optional[int] = Field(default=None, ge=1)
    hidden_nav_indices: Optional[List[int]] = None
    warmup_seconds: Optional[float] = Field(default=None, ge=0.0)
    cooldown_seconds: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("post_warmup_layer")
    @classmethod
    def _reachable_after_warmup(cls, value: Optional[int]) -> Optional[int]:
        allowed = TransitionPolicy().allowed_targets(MainLayer.WARMING)
        if value is not None and allowed is not None and value not in allowed:
            raise ValueError(f"Layer {value} cannot follow the warmup (allowed: {sorted(allowed)})")
        return value


def get_panel(request: Request) -> PanelSession:
    """Resolve the running panel session."""

    panel = getattr(request.app.state, "panel", None)
    if panel is None:
        logger.error("Panel session requested before startup completed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Panel is not running.")
    return panel


def _serialize_runtime_config(settings) -> Dict[str, Any]:
    return {
        "page_name": settings.page_name,
        "default_active_layer": settings.default_active_layer,
        "post_warmup_layer": settings.post_warmup_layer,
        "default_routing_layer": settings.default_routing_layer,
        "routing_layers": list(settings.routing_layers),
        "hidden_nav_indices": list(settings.hidden_nav_indices),
        "warmup_seconds": settings.warmup_seconds,
        "cooldown_seconds": settings.cooldown_seconds,
        "watchdog_seconds": settings.watchdog_seconds,
        "sync_interval_seconds": settings.sync_interval_seconds,
    }


def _serialize_layer_registry() -> List[Dict[str, Any]]:
    policy = TransitionPolicy()
    entries = []
    for layer in MainLayer:
        config = LAYER_CONFIGS[layer]
        allowed = policy.allowed_targets(layer)
        entries.append(
            {
                "index": int(layer),
                "name": layer.display_name,
                "show": list(config.show),
                "hide": list(config.hide),
                "callbacks": list(config.callbacks),
                "allowed_targets": sorted(allowed) if allowed is not None else None,
            }
        )
    return entries


@router.get("/")
async def summary(request: Request) -> Dict[str, Any]:
    """Return a short description of the running panel."""

    panel = getattr(request.app.state, "panel", None)
    return {
        "name": "RoomPanel",
        "version": __version__,
        "page": panel.page if panel else None,
        "active_layer": panel.active_layer.display_name if panel else None,
    }


@router.get("/api/panel")
async def panel_state(panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Return the panel state snapshot."""

    return panel.to_dict()


@router.get("/api/layers")
async def layer_registry() -> List[Dict[str, Any]]:
    """Return the main layer registry and transition table."""

    return _serialize_layer_registry()


@router.post("/api/nav/{index}")
async def navigate(index: int, panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Press a navigation button."""

    if MainLayer.coerce(index) is None:
        raise HTTPException(status_code=404, detail=f"Unknown layer: {index}")
    accepted = panel.request_layer(index)
    logger.info("Navigation request to %s %s", index, "accepted" if accepted else "refused")
    return {"accepted": accepted, "panel": panel.to_dict()}


@router.post("/api/routing/{index}")
async def select_routing(index: int, panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Press a routing destination button."""

    accepted = panel.machine.press_routing_button(index)
    if not accepted:
        panel.machine.refresh_buttons()
    return {"accepted": accepted, "panel": panel.to_dict()}


@router.post("/api/system/start")
async def start_system(panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    panel.machine.start_system()
    return {"panel": panel.to_dict()}


@router.post("/api/system/shutdown")
async def request_shutdown(panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    panel.machine.show_shutdown_confirm()
    return {"panel": panel.to_dict()}


@router.post("/api/system/shutdown/confirm")
async def confirm_shutdown(panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    panel.machine.confirm_shutdown()
    return {"panel": panel.to_dict()}


@router.post("/api/system/shutdown/cancel")
async def cancel_shutdown(panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    panel.machine.cancel_shutdown()
    return {"panel": panel.to_dict()}


@router.put("/api/signals/{name}")
async def set_signal(name: str, payload: SignalPayload, panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Drive an external input pin as if the hardware changed it."""

    control_name = SIGNAL_PINS.get(name)
    control = panel.surface.get(control_name) if control_name else None
    if control is None:
        raise HTTPException(status_code=404, detail=f"Unknown signal: {name}")
    control.set_from_ui(boolean=payload.value)
    logger.info("Signal %s set to %s", name, payload.value)
    return {"signal": name, "value": payload.value, "panel": panel.to_dict()}


@router.put("/api/help/{name}")
async def set_help(name: str, payload: SignalPayload, panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Toggle a help overlay button."""

    control_name = HELP_BUTTONS.get(name)
    control = panel.surface.get(control_name) if control_name else None
    if control is None:
        raise HTTPException(status_code=404, detail=f"Unknown help button: {name}")
    control.set_from_ui(boolean=payload.value)
    return {"help": name, "value": payload.value, "panel": panel.to_dict()}


@router.put("/api/labels/{name}")
async def set_label(name: str, payload: LabelPayload, panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Change the user label behind a legend, e.g. ``txtNav08``."""

    label = panel.surface.get(label_variable_name(name))
    legend = panel.surface.get(name)
    if label is None or legend is None:
        raise HTTPException(status_code=404, detail=f"Unknown legend: {name}")
    label.set_from_ui(string=payload.text)
    return {"legend": name, "text": legend.legend}


@router.post("/api/panel/reinitialize")
async def reinitialize(panel: PanelSession = Depends(get_panel)) -> Dict[str, Any]:
    """Apply the stored settings and replay the full page state."""

    panel.reinitialize(get_settings())
    return {"panel": panel.to_dict()}


@router.get("/api/config")
async def read_configuration() -> Dict[str, Any]:
    """Return the current runtime configuration snapshot."""

    settings = get_settings()
    logger.debug("Providing configuration snapshot")
    return _serialize_runtime_config(settings)


@router.put("/api/config")
async def write_configuration(payload: ConfigurationUpdateRequest) -> Dict[str, Any]:
    """Update runtime configuration and refresh the cached settings."""

    updates = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if key in PERSISTED_FIELDS}
    logger.info("Applying runtime configuration update: %s", sorted(updates))
    try:
        settings = update_settings(updates)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    response = _serialize_runtime_config(settings)
    response["message"] = "Settings updated. Reinitialise the panel to apply them."
    return response
