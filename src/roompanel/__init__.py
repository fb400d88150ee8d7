"""RoomPanel – touch panel navigation and power sequencing for AV rooms."""

from importlib.metadata import PackageNotFoundError, version

from .logger import get_logger

logger = get_logger(__name__)

try:
    __version__ = version("roompanel")
    logger.debug("Detected installed RoomPanel version: %s", __version__)
except PackageNotFoundError:  # pragma: no cover - during local dev
    __version__ = "0.0.0"
    logger.debug("Package metadata not found; defaulting version to %s", __version__)


__all__ = ["__version__"]
