"""Named components (other scripts' control sets) reachable from a panel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..logger import get_logger
from .base import ComponentNotFound
from .controls import Control

logger = get_logger(__name__)


@dataclass
class Component:
    """A named set of controls owned by another script."""

    name: str
    controls: Dict[str, Control] = field(default_factory=dict)

    @classmethod
    def with_controls(cls, name: str, **values: float | bool | str) -> "Component":
        """Build a component whose controls are pre-set from keyword values."""

        controls: Dict[str, Control] = {}
        for control_name, value in values.items():
            control = Control(control_name)
            if isinstance(value, bool):
                control.boolean = value
            elif isinstance(value, (int, float)):
                control.value = float(value)
            else:
                control.string = str(value)
            controls[control_name] = control
        return cls(name, controls)

    def get(self, control_name: str) -> Optional[Control]:
        return self.controls.get(control_name)

    def __contains__(self, control_name: object) -> bool:
        return control_name in self.controls


@dataclass
class ComponentDirectory:
    """In-memory directory of components addressable by name."""

    components: Dict[str, Component] = field(default_factory=dict)

    def register(self, *components: Component) -> None:
        for component in components:
            if component.name in self.components:
                logger.warning("Replacing existing component registration: %s", component.name)
            self.components[component.name] = component
            logger.debug("Registered component: %s", component.name)

    def extend(self, components: Iterable[Component]) -> None:
        for component in components:
            self.register(component)

    def names(self) -> List[str]:
        return sorted(self.components)

    def lookup(self, name: str) -> Component:
        """Return a registered component or raise ``ComponentNotFound``."""

        try:
            return self.components[name]
        except KeyError as exc:
            raise ComponentNotFound(f"No component named '{name}'") from exc
