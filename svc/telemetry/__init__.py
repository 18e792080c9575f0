"""Sensor telemetry daemon for one-wire and I2C sysfs devices."""

__version__ = "0.6.0"
