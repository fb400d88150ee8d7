"""Adjacency table deciding which main layer may follow which."""

from __future__ import annotations

from typing import FrozenSet, Mapping, Optional

from ..logger import get_logger
from .layers import MainLayer

logger = get_logger(__name__)

_WORKING = frozenset(
    {
        MainLayer.ROOM_CONTROLS,
        MainLayer.PC,
        MainLayer.LAPTOP,
        MainLayer.WIRELESS,
        MainLayer.ROUTING,
        MainLayer.DIALER,
        MainLayer.STREAM_MUSIC,
    }
)


def _working_except(layer: MainLayer) -> FrozenSet[MainLayer]:
    return frozenset({MainLayer.ALARM} | (_WORKING - {layer}))


# Sources missing from the table (Alarm, Incoming Call, Laptop) may go anywhere.
# Working layers may not re-select themselves.
DEFAULT_TRANSITIONS: Mapping[MainLayer, FrozenSet[MainLayer]] = {
    MainLayer.START: frozenset({MainLayer.ALARM, MainLayer.WARMING, MainLayer.COOLING}),
    MainLayer.WARMING: frozenset({MainLayer.ALARM} | (_WORKING - {MainLayer.ROOM_CONTROLS})),
    MainLayer.COOLING: frozenset({MainLayer.ALARM, MainLayer.START}),
    MainLayer.ROOM_CONTROLS: _working_except(MainLayer.ROOM_CONTROLS),
    MainLayer.PC: _working_except(MainLayer.PC),
    MainLayer.WIRELESS: _working_except(MainLayer.WIRELESS),
    MainLayer.ROUTING: _working_except(MainLayer.ROUTING),
    MainLayer.DIALER: _working_except(MainLayer.DIALER),
    MainLayer.STREAM_MUSIC: _working_except(MainLayer.STREAM_MUSIC),
}


class TransitionPolicy:
    """Pure lookup over a static transition table."""

    def __init__(self, table: Optional[Mapping[int, FrozenSet[int]]] = None):
        source = DEFAULT_TRANSITIONS if table is None else table
        self._table = {int(key): frozenset(int(item) for item in value) for key, value in source.items()}

    def restricted(self, source: int) -> bool:
        """True when ``source`` has an entry in the table."""

        return int(source) in self._table

    def allowed_targets(self, source: int) -> Optional[FrozenSet[int]]:
        """Permitted targets for ``source``; ``None`` means unrestricted."""

        return self._table.get(int(source))

    def is_allowed(self, source: int, target: int) -> bool:
        allowed = self._table.get(int(source))
        if allowed is None:
            return True
        if int(target) in allowed:
            return True
        logger.warning("Invalid layer transition from %s to %s", _describe(source), _describe(target))
        return False


def _describe(layer: int) -> str:
    known = MainLayer.coerce(layer)
    return f"{int(layer)} ({known.display_name})" if known else str(layer)
