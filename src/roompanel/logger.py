"""Centralised logging utilities for RoomPanel."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional, TextIO

from .config import PanelSettings, get_settings

LOGGER_NAME = "roompanel"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _LevelToggleFilter(logging.Filter):
    """Drop records whose level has been switched off in the settings."""

    def __init__(self, settings: PanelSettings) -> None:
        super().__init__()
        self._toggles: dict[int, bool] = {}
        self.update(settings)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for threshold in (logging.ERROR, logging.WARNING, logging.INFO):
            if record.levelno >= threshold:
                return self._toggles[threshold]
        return self._toggles[logging.DEBUG]

    def update(self, settings: PanelSettings) -> None:
        self._toggles = {
            logging.ERROR: settings.log_error_enabled,
            logging.WARNING: settings.log_warning_enabled,
            logging.INFO: settings.log_info_enabled,
            logging.DEBUG: settings.log_debug_enabled,
        }


class PageLoggerAdapter(logging.LoggerAdapter):
    """Prefix every record with the panel page it concerns."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['page']}] {msg}", kwargs


_configured = False
_filter: Optional[_LevelToggleFilter] = None


def configure_logging(
    settings: Optional[PanelSettings] = None,
    *,
    force: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure the shared RoomPanel logger."""

    global _configured, _filter
    settings = settings or get_settings()
    logger = logging.getLogger(LOGGER_NAME)

    if _configured and not force:
        if _filter:
            _filter.update(settings)
        return

    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))

    _filter = _LevelToggleFilter(settings)
    handler.addFilter(_filter)

    logger.addHandler(handler)
    # Propagation stays on so pytest's caplog sees panel diagnostics.
    logger.propagate = True
    _configured = True


def refresh_logging(settings: Optional[PanelSettings] = None) -> None:
    """Re-apply level toggles after the settings changed."""

    configure_logging(settings=settings or get_settings(), force=False)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger scoped under the RoomPanel namespace."""

    configure_logging()
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def get_page_logger(name: str, page: str) -> PageLoggerAdapter:
    """Return a logger that tags records with a panel page name."""

    return PageLoggerAdapter(get_logger(name), {"page": page})
