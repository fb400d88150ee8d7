"""Application configuration for RoomPanel."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_ERROR_ENABLED = True
DEFAULT_LOG_WARNING_ENABLED = True
DEFAULT_LOG_INFO_ENABLED = True
DEFAULT_LOG_DEBUG_ENABLED = False
DEFAULT_ALLOWED_ORIGINS = ("*",)
DEFAULT_PAGE_NAME = "UCI MPR(005)"
DEFAULT_ACTIVE_LAYER = 8
DEFAULT_POST_WARMUP_LAYER = 8
DEFAULT_ROUTING_LAYER = 1
DEFAULT_ROUTING_LAYERS = (
    "R01-Routing-Lobby",
    "R02-Routing-WTerrace",
    "R03-Routing-NTerraceWall",
    "R04-Routing-Garden",
    "R05-Routing-NTerraceFloor",
)
DEFAULT_WATCHDOG_SECONDS = 300.0
DEFAULT_SYNC_INTERVAL_SECONDS = 5.0
DEFAULT_SIMULATED_WARMUP_SECONDS = 10.0
DEFAULT_SIMULATED_COOLDOWN_SECONDS = 5.0
MAIN_LAYER_COUNT = 12


class PanelSettings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ROOMPANEL_",
        env_file=".env",
        extra="ignore",
    )

    host: str = Field(default=DEFAULT_HOST, description="Interface for the API server.")
    port: int = Field(default=DEFAULT_PORT, description="Port for the API server.")
    reload: bool = Field(default=False, description="Enable auto-reload. Use only during development.")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Uvicorn log level.")
    log_error_enabled: bool = Field(
        default=DEFAULT_LOG_ERROR_ENABLED,
        description="Emit error-level log records.",
    )
    log_warning_enabled: bool = Field(
        default=DEFAULT_LOG_WARNING_ENABLED,
        description="Emit warning-level log records.",
    )
    log_info_enabled: bool = Field(
        default=DEFAULT_LOG_INFO_ENABLED,
        description="Emit information-level log records.",
    )
    log_debug_enabled: bool = Field(
        default=DEFAULT_LOG_DEBUG_ENABLED,
        description="Emit debug-level log records.",
    )
    allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS),
        description="CORS origins allowed to access the API.",
    )
    page_name: str = Field(
        default=DEFAULT_PAGE_NAME,
        description="Name of the touch panel page whose layers are driven.",
    )
    default_active_layer: int = Field(
        default=DEFAULT_ACTIVE_LAYER,
        ge=1,
        le=MAIN_LAYER_COUNT,
        description="Working layer selected when the room is already powered at start-up.",
    )
    post_warmup_layer: int = Field(
        default=DEFAULT_POST_WARMUP_LAYER,
        ge=1,
        le=MAIN_LAYER_COUNT,
        description="Layer shown once the warmup progress bar completes.",
    )
    default_routing_layer: int = Field(
        default=DEFAULT_ROUTING_LAYER,
        description="Routing destination sub-view shown when the Routing layer opens.",
    )
    routing_layers: list[str] | str = Field(
        default_factory=lambda: list(DEFAULT_ROUTING_LAYERS),
        description="Ordered routing destination sub-layer names.",
    )
    hidden_nav_indices: list[int] | str = Field(
        default_factory=list,
        description="Navigation button indices (1-12) hidden on this panel.",
    )
    room_controls_component: Optional[str] = Field(
        default=None,
        description="Explicit room automation component name; derived from the page name when unset.",
    )
    warmup_seconds: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Page-level warmup duration used when the automation component has none.",
    )
    cooldown_seconds: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Page-level cooldown duration used when the automation component has none.",
    )
    watchdog_seconds: float = Field(
        default=DEFAULT_WATCHDOG_SECONDS,
        gt=0.0,
        description="Ceiling after which a stalled progress bar is force-completed.",
    )
    sync_interval_seconds: float = Field(
        default=DEFAULT_SYNC_INTERVAL_SECONDS,
        gt=0.0,
        description="Polling interval for synchronising with the room automation controller.",
    )
    simulate_automation: bool = Field(
        default=True,
        description="Register an in-process room automation controller when serving the API.",
    )
    simulated_warmup_seconds: float = Field(
        default=DEFAULT_SIMULATED_WARMUP_SECONDS,
        ge=0.0,
        description="Warmup time reported by the simulated automation controller.",
    )
    simulated_cooldown_seconds: float = Field(
        default=DEFAULT_SIMULATED_COOLDOWN_SECONDS,
        ge=0.0,
        description="Cooldown time reported by the simulated automation controller.",
    )

    @field_validator("hidden_nav_indices", mode="before")
    @classmethod
    def _parse_hidden_nav_indices(cls, value: Any) -> list[int]:
        """Accept plain numbers, comma/space-separated strings or JSON arrays."""

        if value is None or value == "":
            return []
        if isinstance(value, (list, tuple, set)):
            indices = [int(item) for item in value]
        elif isinstance(value, (int, float)):
            indices = [int(value)]
        elif isinstance(value, str):
            raw = value.strip()
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                tokens = [token for token in raw.replace(",", " ").split() if token]
                try:
                    indices = [int(token) for token in tokens]
                except ValueError as exc:
                    raise ValueError(f"Invalid navigation index list: {value}") from exc
            else:
                if isinstance(parsed, (int, float)):
                    indices = [int(parsed)]
                elif isinstance(parsed, list):
                    indices = [int(item) for item in parsed]
                else:
                    raise ValueError(f"Unsupported navigation index format: {value}")
        else:
            raise ValueError(f"Unsupported navigation index type: {type(value)!r}")
        for index in indices:
            if not 1 <= index <= MAIN_LAYER_COUNT:
                raise ValueError(f"Navigation index out of range (1-{MAIN_LAYER_COUNT}): {index}")
        return indices

    @field_validator("routing_layers", mode="before")
    @classmethod
    def _parse_routing_layers(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            raw = value.strip()
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                parsed = [item.strip() for item in raw.split(",")]
            value = parsed if isinstance(parsed, list) else [parsed]
        names = [str(item) for item in value if str(item)]
        if not names:
            raise ValueError("At least one routing layer is required.")
        return names


_DEFAULT_RUNTIME_PATH = Path(__file__).resolve().parents[2] / ".roompanel-settings.json"
RUNTIME_CONFIG_PATH = Path(os.getenv("ROOMPANEL_RUNTIME_CONFIG", str(_DEFAULT_RUNTIME_PATH)))
PERSISTED_FIELDS = {
    "default_active_layer",
    "post_warmup_layer",
    "default_routing_layer",
    "hidden_nav_indices",
    "warmup_seconds",
    "cooldown_seconds",
}

_SETTINGS_LOCK = RLock()
_SETTINGS: PanelSettings | None = None


def _load_runtime_overrides() -> Dict[str, Any]:
    if not RUNTIME_CONFIG_PATH.exists():
        return {}
    try:
        data = json.loads(RUNTIME_CONFIG_PATH.read_text())
    except (OSError, json.JSONDecodeError):
        logging.getLogger("roompanel.config").warning(
            "Ignoring unreadable runtime configuration at %s", RUNTIME_CONFIG_PATH
        )
        return {}
    return data if isinstance(data, dict) else {}


def _write_runtime_overrides(overrides: Dict[str, Any]) -> None:
    try:
        RUNTIME_CONFIG_PATH.write_text(json.dumps(overrides, indent=2, sort_keys=True))
    except OSError:
        logger = logging.getLogger("roompanel.config")
        logger.warning("Failed to persist runtime configuration overrides to %s", RUNTIME_CONFIG_PATH)


def _load_settings() -> PanelSettings:
    """Instantiate settings from the environment and runtime overrides."""

    base = PanelSettings()
    overrides = _load_runtime_overrides()
    if overrides:
        try:
            base = PanelSettings(**{**base.model_dump(), **overrides})
        except ValueError:
            logger = logging.getLogger("roompanel.config")
            logger.warning("Ignoring invalid runtime overrides: %s", overrides)
    return base


def get_settings() -> PanelSettings:
    """Return the current application settings, loading them if necessary."""

    global _SETTINGS
    with _SETTINGS_LOCK:
        if _SETTINGS is None:
            _SETTINGS = _load_settings()
        return _SETTINGS


def reload_settings() -> PanelSettings:
    """Reload settings from the environment, replacing the current cache."""

    global _SETTINGS
    with _SETTINGS_LOCK:
        _SETTINGS = _load_settings()
        return _SETTINGS


def update_settings(changes: Dict[str, Any]) -> PanelSettings:
    """Validate and apply runtime overrides to the current settings."""

    global _SETTINGS
    with _SETTINGS_LOCK:
        current = get_settings()
        updated = PanelSettings(**{**current.model_dump(), **changes})
        _SETTINGS = updated

        overrides = _load_runtime_overrides()
        for key in PERSISTED_FIELDS:
            if key in changes:
                overrides[key] = getattr(updated, key)
        _write_runtime_overrides(overrides)

        return _SETTINGS
