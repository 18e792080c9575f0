from __future__ import annotations
import logging
from typing import Dict

from .models import ConfigError

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"

# Log categories: main, sensors, network
MAIN_LOGGER = "telemetry"
SENSORS_LOGGER = "telemetry.sensors"
NETWORK_LOGGER = "telemetry.publisher"
# The poll loop reports through the main category
LOOP_LOGGER = "telemetry.acquisition"

_LEVELS: Dict[str, int] = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "err": logging.ERROR,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}


def parse_level(name: str) -> int:
    """Map a level name (spdlog or logging spelling, any case) to a logging level."""
    try:
        return _LEVELS[name.strip().lower()]
    except KeyError:
        raise ConfigError(f"Unknown log level: {name!r}") from None


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def apply_levels(main: int, sensors: int, network: int) -> None:
    logging.getLogger(MAIN_LOGGER).setLevel(main)
    logging.getLogger(SENSORS_LOGGER).setLevel(sensors)
    logging.getLogger(NETWORK_LOGGER).setLevel(network)
