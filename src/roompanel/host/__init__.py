"""Boundary objects shared with the panel runtime."""

from ..logger import get_logger
from .automation import AutomationController, register_controller, registered_controller, unregister_controller
from .base import (
    ComponentNotFound,
    HostAdapter,
    HostError,
    InMemoryPresentationHost,
    LayerNotFound,
    PageNotFound,
    PresentationHost,
    Transition,
    page_name_candidates,
    resolve_page_name,
)
from .components import Component, ComponentDirectory
from .controls import Control, ControlSurface, required_controls

get_logger(__name__).debug("Host boundary package loaded")

__all__ = [
    "AutomationController",
    "Component",
    "ComponentDirectory",
    "ComponentNotFound",
    "Control",
    "ControlSurface",
    "HostAdapter",
    "HostError",
    "InMemoryPresentationHost",
    "LayerNotFound",
    "PageNotFound",
    "PresentationHost",
    "Transition",
    "page_name_candidates",
    "register_controller",
    "registered_controller",
    "required_controls",
    "resolve_page_name",
    "unregister_controller",
]
