"""Command-line utilities for RoomPanel."""

from __future__ import annotations

import os
from typing import Optional

import typer
import uvicorn

from ..config import reload_settings
from ..logger import configure_logging, get_logger
from ..navigation import LAYER_CONFIGS, MainLayer, TransitionPolicy

app = typer.Typer(add_completion=False, help="RoomPanel touch panel tooling.")

_BOOL_TRUE_VALUES = {"1", "true", "yes", "on"}
_BOOL_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_optional_bool(value: Optional[str]) -> Optional[bool]:
    """Convert a CLI-provided string into an optional boolean."""

    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _BOOL_TRUE_VALUES:
        return True
    if normalized in _BOOL_FALSE_VALUES:
        return False
    raise typer.BadParameter("Expected a boolean value (true/false).")


@app.callback()
def _root_callback() -> None:
    """RoomPanel CLI command group."""


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Interface to bind the server to."),
    port: Optional[int] = typer.Option(None, help="Port to bind the server to."),
    reload: Optional[str] = typer.Option(
        None,
        help="Enable auto-reload (development only). Provide true/false to override configured value.",
    ),
    log_level: Optional[str] = typer.Option(None, help="Logging level passed to Uvicorn."),
    page: Optional[str] = typer.Option(None, help="Override the panel page name."),
) -> None:
    """Start the panel API server."""

    reload_override = _parse_optional_bool(reload)
    if page is not None:
        os.environ["ROOMPANEL_PAGE_NAME"] = page
    settings = reload_settings()
    configure_logging(settings, force=True)
    logger = get_logger(__name__)
    bound_reload = reload_override if reload_override is not None else settings.reload
    logger.info(
        "Starting RoomPanel server (host=%s port=%s reload=%s page=%s)",
        host or settings.host,
        port or settings.port,
        bound_reload,
        settings.page_name,
    )
    logger.debug(
        "Logging toggles - error=%s warning=%s info=%s debug=%s",
        settings.log_error_enabled,
        settings.log_warning_enabled,
        settings.log_info_enabled,
        settings.log_debug_enabled,
    )
    uvicorn.run(
        "roompanel.server.app:create_application",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=bound_reload,
        log_level=log_level or settings.log_level,
    )


@app.command()
def layers() -> None:
    """Print the main layer registry and the allowed transitions."""

    policy = TransitionPolicy()
    for layer in MainLayer:
        config = LAYER_CONFIGS[layer]
        allowed = policy.allowed_targets(layer)
        targets = "any" if allowed is None else ", ".join(MainLayer(index).display_name for index in sorted(allowed))
        typer.echo(f"{int(layer):2d}  {layer.display_name:<14} show={','.join(config.show)}")
        typer.echo(f"    -> {targets}")


def main() -> None:
    """Entrypoint for the ``roompanel`` console script."""

    logger = get_logger(__name__)
    logger.debug("Invoked RoomPanel CLI entrypoint")
    app()
