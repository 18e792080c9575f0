from __future__ import annotations
import os

# Default configuration file; -f on the command line takes precedence
CONFIG_FILE = os.getenv("TELEMETRY_CONFIG_FILE", "telemetry.json")

# Root of the kernel's bus tree. Point this at a directory laid out like
# /sys/bus to run against a simulated device tree.
SYSFS_ROOT = os.getenv("TELEMETRY_SYSFS_ROOT", "/sys/bus")

# Payload sink: "log" (log only), "mqtt" or "http"
PUBLISHER = os.getenv("TELEMETRY_PUBLISHER", "log").lower()

# MQTT broker settings (publisher "mqtt")
MQTT_HOST = os.getenv("TELEMETRY_MQTT_HOST", "localhost")
MQTT_PORT = int(os.getenv("TELEMETRY_MQTT_PORT", "1883"))
MQTT_USERNAME = os.getenv("TELEMETRY_MQTT_USERNAME", "")
MQTT_PASSWORD = os.getenv("TELEMETRY_MQTT_PASSWORD", "")
MQTT_TOPIC_PREFIX = os.getenv("TELEMETRY_MQTT_TOPIC_PREFIX", "telemetry")
MQTT_QOS = int(os.getenv("TELEMETRY_MQTT_QOS", "1"))

# HTTP collector settings (publisher "http")
HTTP_URL = os.getenv("TELEMETRY_HTTP_URL", "")
HTTP_TIMEOUT_S = float(os.getenv("TELEMETRY_HTTP_TIMEOUT_S", "10"))
