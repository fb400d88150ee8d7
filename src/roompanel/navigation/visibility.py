"""Memoised layer visibility setter."""

from __future__ import annotations

from typing import Dict, Iterable, List

from ..host.base import HostAdapter, Transition
from ..logger import get_logger

logger = get_logger(__name__)


class LayerVisibilityApplier:
    """Assert layer visibility through the host adapter, skipping redundant calls.

    Until ``initialized`` is set every request reaches the host, so the first
    full render establishes a known state. Afterwards a request whose
    visibility matches the last applied value is dropped. The memo records the
    requested value even when the host rejected the layer.
    """

    def __init__(self, adapter: HostAdapter):
        self._adapter = adapter
        self._states: Dict[str, bool] = {}
        self.initialized = False

    @property
    def page(self) -> str:
        return self._adapter.page

    def set_visible(self, layer: str, visible: bool, transition: Transition = Transition.NONE) -> bool:
        visible = bool(visible)
        if self.initialized and self._states.get(layer) is visible:
            return True
        applied = self._adapter.set_layer_visible(layer, visible, transition)
        self._states[layer] = visible
        return applied

    def apply(self, layers: Iterable[str], visible: bool, transition: Transition = Transition.NONE) -> bool:
        """Apply the same visibility to several layers; True only if all succeeded."""

        results = [self.set_visible(layer, visible, transition) for layer in layers]
        return all(results)

    def show(self, *layers: str, transition: Transition = Transition.FADE) -> bool:
        return self.apply(layers, True, transition)

    def hide(self, *layers: str, transition: Transition = Transition.NONE) -> bool:
        return self.apply(layers, False, transition)

    def is_visible(self, layer: str) -> bool:
        return self._states.get(layer, False)

    def visible_layers(self) -> List[str]:
        return sorted(layer for layer, shown in self._states.items() if shown)

    def reset(self) -> None:
        """Forget everything applied so the next render reaches the host in full."""

        self._states.clear()
        self.initialized = False
        logger.debug("Layer memo cleared for page %s", self.page)
