# telemetry/sensors/interface.py
from __future__ import annotations
from dataclasses import dataclass

SYSFS_BUS_ROOT = "/sys/bus"

# Bus families the daemon knows how to address
INPUT_TYPES = ("w1", "i2c")


@dataclass(frozen=True)
class SensorDescriptor:
    name: str               # e.g. "insideTemp"
    module: str             # e.g. "beehive"
    bus_address: str        # e.g. "28-012033dcea3b"
    measurement_type: str   # e.g. "temperature"
    input_type: str         # "w1" or "i2c"
    poll_interval_ms: int   # shared by every sensor in a run
    bus_root: str = SYSFS_BUS_ROOT

    @property
    def device_path(self) -> str:
        """
        Path of the pseudo-file holding this sensor's reading.

        Recomputed on every access: the kernel may rebind the device between cycles.
        """
        root = self.bus_root.rstrip("/")
        return f"{root}/{self.input_type}/devices/{self.bus_address}/{self.measurement_type}"
