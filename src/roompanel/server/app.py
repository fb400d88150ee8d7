"""Application factory for the RoomPanel API."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import PanelSettings, get_settings
from ..host import ComponentDirectory, ControlSurface, InMemoryPresentationHost, register_controller, unregister_controller
from ..host.controls import SYSTEM_POWER_SWITCH, label_variable_name
from ..logger import configure_logging, get_logger
from ..navigation import MainLayer, create_panel
from ..navigation.layers import MAIN_SURFACES, all_layers
from ..runtime import AsyncioScheduler, SimulatedRoomAutomation
from . import routes


def build_surface() -> ControlSurface:
    """Standard panel controls with the nav labels pre-filled.

    The local power switch is left out so power requests reach the
    registered automation controller.
    """

    surface = ControlSurface.standard(omit=(SYSTEM_POWER_SWITCH,))
    for layer in MainLayer:
        label = surface.get(label_variable_name(f"txtNav{int(layer):02d}"))
        if label is not None:
            label.string = layer.display_name
    return surface


def build_host(settings: PanelSettings) -> InMemoryPresentationHost:
    layers = set(all_layers(tuple(settings.routing_layers))) | set(MAIN_SURFACES.values())
    return InMemoryPresentationHost.with_page(settings.page_name, layers)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Initialising RoomPanel FastAPI application (host=%s port=%s page=%s)",
        settings.host,
        settings.port,
        settings.page_name,
    )
    app = FastAPI(
        title="RoomPanel API",
        version=__version__,
        summary="Touch panel navigation and power sequencing.",
    )

    if settings.allowed_origins:
        logger.debug("Configuring CORS with allowed origins: %s", settings.allowed_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["*"],
            allow_headers=["*"],
            allow_credentials=True,
        )

    scheduler = AsyncioScheduler()
    host = build_host(settings)
    surface = build_surface()
    directory = ComponentDirectory()
    automation = None
    if settings.simulate_automation:
        automation = SimulatedRoomAutomation(
            scheduler,
            warmup_time=settings.simulated_warmup_seconds,
            cooldown_time=settings.simulated_cooldown_seconds,
        )

    app.state.settings = settings
    app.state.host = host
    app.state.surface = surface
    app.state.automation = automation
    app.state.panel = None

    @app.on_event("startup")
    async def _start_panel() -> None:
        if automation is not None:
            register_controller(automation)
        panel = create_panel(settings, host, surface, directory, scheduler)
        panel.start()
        app.state.panel = panel
        logger.info("Panel started on page %s (layer %s)", panel.page, panel.active_layer.display_name)

    @app.on_event("shutdown")
    async def _stop_panel() -> None:
        panel = app.state.panel
        if panel is not None:
            panel.stop()
            app.state.panel = None
        if automation is not None:
            unregister_controller(automation)

    app.include_router(routes.router)
    logger.debug("API routes registered")
    return app
