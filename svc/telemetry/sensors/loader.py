# telemetry/sensors/loader.py
from __future__ import annotations
import json
import os
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from .interface import SensorDescriptor, SYSFS_BUS_ROOT
from ..logs import TRACE
from ..models import ConfigError, TelemetryConfig

logger = logging.getLogger(__name__)


def _read_config_file(path: str) -> Dict[str, Any]:
    """
    Expected JSON structure (every key optional, defaults shown):

    {
      "module": "beehive",
      "names": ["insideTemp"],
      "sensors": ["temperature"],
      "serials": ["28-012033dcea3b"],
      "inputTypes": ["w1"],
      "delays": 60,
      "mainlog": "info",
      "sensorslog": "info",
      "networklog": "info"
    }

    Keys starting with '_' are comments and are dropped.
    """
    if not os.path.exists(path):
        logger.warning(f"No configuration file found at {path}, using defaults")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Error parsing configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Error parsing configuration file {path}: expected a JSON object")
    return {k: v for k, v in data.items() if not k.startswith("_")}


def load_config(path: str) -> TelemetryConfig:
    """Read and validate the configuration file. Raises ConfigError on any problem."""
    raw = _read_config_file(path)
    try:
        cfg = TelemetryConfig.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration in {path}: {problems}") from e

    logger.debug(f"Loaded configuration for module {cfg.module} from {path}")
    return cfg


def build_descriptors(cfg: TelemetryConfig, bus_root: str = SYSFS_BUS_ROOT) -> List[SensorDescriptor]:
    """One descriptor per configured sensor, in configuration order."""
    descriptors: List[SensorDescriptor] = []
    interval_ms = cfg.poll_interval_ms

    for i, (name, kind, serial, input_type) in enumerate(
        zip(cfg.names, cfg.sensors, cfg.serials, cfg.input_types)
    ):
        descriptor = SensorDescriptor(
            name=name,
            module=cfg.module,
            bus_address=serial,
            measurement_type=kind,
            input_type=input_type,
            poll_interval_ms=interval_ms,
            bus_root=bus_root,
        )
        logger.log(TRACE, f"Sensor {i}: {descriptor}")
        logger.debug(f"Configured {name} sensor as {kind}, Addr: {descriptor.device_path}")
        descriptors.append(descriptor)

    return descriptors
