"""Presentation host boundary: layer visibility calls and their failure modes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..logger import get_logger

logger = get_logger(__name__)


class Transition(str, Enum):
    """Transition style applied when a layer changes visibility."""

    FADE = "fade"
    NONE = "none"


class HostError(RuntimeError):
    """Base class for errors raised by the panel host."""


class PageNotFound(HostError):
    """Raised when a page name is not known to the presentation host."""


class LayerNotFound(HostError):
    """Raised when a layer name is not present on the requested page."""


class ComponentNotFound(HostError):
    """Raised when a named component cannot be located."""


class PresentationHost:
    """Base class for the runtime that actually paints panel layers."""

    def pages(self) -> List[str]:
        """Return the page names this host can drive."""

        raise NotImplementedError

    def set_layer_visible(self, page: str, layer: str, visible: bool, transition: Transition) -> None:
        """Show or hide ``layer`` on ``page``; raise ``HostError`` on failure."""

        raise NotImplementedError


@dataclass
class VisibilityCall:
    """One recorded visibility request."""

    page: str
    layer: str
    visible: bool
    transition: Transition


@dataclass
class InMemoryPresentationHost(PresentationHost):
    """Host that keeps layer visibility in memory and logs every call."""

    layers: Dict[str, Set[str]] = field(default_factory=dict)
    visibility: Dict[Tuple[str, str], bool] = field(default_factory=dict)
    calls: List[VisibilityCall] = field(default_factory=list)

    @classmethod
    def with_page(cls, page: str, layers: Iterable[str]) -> "InMemoryPresentationHost":
        return cls(layers={page: set(layers)})

    def pages(self) -> List[str]:
        return list(self.layers)

    def set_layer_visible(self, page: str, layer: str, visible: bool, transition: Transition) -> None:
        known = self.layers.get(page)
        if known is None:
            raise PageNotFound(f"Page '{page}' does not exist")
        if layer not in known:
            raise LayerNotFound(f"Layer '{layer}' not found on page '{page}'")
        self.calls.append(VisibilityCall(page, layer, visible, Transition(transition)))
        self.visibility[(page, layer)] = visible

    def is_visible(self, page: str, layer: str) -> bool:
        return self.visibility.get((page, layer), False)

    def visible_layers(self, page: str) -> Set[str]:
        return {name for (owner, name), shown in self.visibility.items() if owner == page and shown}


class HostAdapter:
    """Single choke point turning host failures into boolean results."""

    def __init__(self, host: PresentationHost, page: str):
        self._host = host
        self.page = page

    @property
    def host(self) -> PresentationHost:
        return self._host

    def set_layer_visible(self, layer: str, visible: bool, transition: Transition) -> bool:
        try:
            self._host.set_layer_visible(self.page, layer, visible, transition)
        except HostError as exc:
            logger.warning("Layer '%s' not applied on page %s: %s", layer, self.page, exc)
            return False
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected host failure for layer '%s' on page %s: %s", layer, self.page, exc)
            return False
        logger.debug("Layer visibility: '%s' set to %s (%s)", layer, visible, Transition(transition).value)
        return True


def page_name_candidates(name: str) -> List[str]:
    """Return the page name spellings worth trying, most specific first."""

    variants = [
        name,
        re.sub(r"\s+", " ", name),
        re.sub(r"\s+", "", name),
        name.replace("(", "").replace(")", ""),
        re.sub(r"\s+", "-", name).replace("(", "").replace(")", ""),
    ]
    return list(dict.fromkeys(variants))


def resolve_page_name(host: PresentationHost, name: str) -> Optional[str]:
    """Match a configured page name against the pages the host exposes."""

    available = set(host.pages())
    for candidate in page_name_candidates(name):
        logger.debug("Attempting page name: %s", candidate)
        if candidate in available:
            if candidate != name:
                logger.info("Page '%s' resolved as '%s'", name, candidate)
            return candidate
    logger.error("Could not match page '%s' against any host page: %s", name, sorted(available))
    return None
