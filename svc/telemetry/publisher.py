from __future__ import annotations
import time
import logging
from typing import Optional, Protocol

import paho.mqtt.client as mqtt
import requests

from .config import (
    HTTP_TIMEOUT_S,
    HTTP_URL,
    MQTT_HOST,
    MQTT_PASSWORD,
    MQTT_PORT,
    MQTT_QOS,
    MQTT_TOPIC_PREFIX,
    MQTT_USERNAME,
)
from .models import ConfigError
from .sensors.interface import SensorDescriptor

logger = logging.getLogger(__name__)

# In-flight QoS>0 messages paho may hold before refusing new publishes
MAX_QUEUED_MESSAGES = 100


class Publisher(Protocol):
    """
    Sink for formatted payloads.

    Publishing never raises: a payload that cannot be delivered is logged and
    dropped so one unreachable broker does not stop sensor acquisition.
    """

    def publish(self, descriptor: SensorDescriptor, payload: str) -> None:
        ...

    def close(self) -> None:
        ...


class LogPublisher:
    """Writes each payload to the network log category."""

    def publish(self, descriptor: SensorDescriptor, payload: str) -> None:
        logger.info(f"Next Payload: {payload}")

    def close(self) -> None:
        pass


class MqttPublisher:
    """
    Publishes each payload to <topic_prefix>/<module>/<sensor-name>.

    The paho network loop runs on its own thread and reconnects on its own.
    Payloads published while disconnected are logged and dropped, and paho's
    outgoing queue is capped so an unacknowledged backlog cannot grow unbounded.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        topic_prefix: str = "telemetry",
        qos: int = 1,
        client_id: str = "telemetry",
        max_queued: int = MAX_QUEUED_MESSAGES,
    ) -> None:
        self.host = host
        self.port = port
        self.topic_prefix = topic_prefix.rstrip("/")
        self.qos = qos
        self._connected = False

        self._client = mqtt.Client(
            client_id=f"{client_id}-{int(time.time())}",
            protocol=mqtt.MQTTv311,
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        if username and password:
            self._client.username_pw_set(username, password)
        self._client.max_queued_messages_set(max_queued)

        logger.info(f"Connecting to MQTT broker {host}:{port}")
        self._client.connect_async(host, port, keepalive=60)
        self._client.loop_start()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            self._connected = True
            logger.info("Connected to MQTT broker")
        else:
            self._connected = False
            logger.error(f"MQTT connection refused: {reason_code}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._connected = False
        logger.warning(f"Disconnected from MQTT broker ({reason_code})")

    @property
    def is_connected(self) -> bool:
        return self._connected

    def topic_for(self, descriptor: SensorDescriptor) -> str:
        return f"{self.topic_prefix}/{descriptor.module}/{descriptor.name}"

    def publish(self, descriptor: SensorDescriptor, payload: str) -> None:
        topic = self.topic_for(descriptor)
        if not self._connected:
            logger.warning(f"MQTT broker not connected, dropping payload for {topic}")
            return
        try:
            info = self._client.publish(topic, payload, qos=self.qos)
        except (ValueError, OSError) as e:
            logger.error(f"MQTT publish to {topic} failed: {e}")
            return
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(f"MQTT publish to {topic} not accepted: {mqtt.error_string(info.rc)}")
            return
        logger.debug(f"Published to {topic}: {payload}")

    def close(self) -> None:
        try:
            self._client.loop_stop()
            self._client.disconnect()
        except OSError as e:
            logger.warning(f"MQTT disconnect error: {e}")
        self._connected = False


class HttpPublisher:
    """POSTs each payload as text/plain to a collector URL."""

    def __init__(self, url: str, timeout_s: float = 10.0) -> None:
        if not url:
            raise ConfigError("TELEMETRY_HTTP_URL must be set for the http publisher")
        self.url = url
        self.timeout_s = timeout_s
        self.headers = {"Content-Type": "text/plain; charset=utf-8"}

    def publish(self, descriptor: SensorDescriptor, payload: str) -> None:
        try:
            response = requests.post(
                self.url,
                data=payload.encode("utf-8"),
                headers=self.headers,
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            logger.error(f"HTTP publish for {descriptor.name} failed: {e}")
            return

        if not 200 <= response.status_code < 300:
            logger.error(f"HTTP publish for {descriptor.name} rejected: {response.status_code}")
            return
        logger.debug(f"Posted {descriptor.name}: {payload}")

    def close(self) -> None:
        pass


def build_publisher(kind: str) -> Publisher:
    """Create the publisher named by TELEMETRY_PUBLISHER."""
    if kind == "log":
        return LogPublisher()
    if kind == "mqtt":
        return MqttPublisher(
            host=MQTT_HOST,
            port=MQTT_PORT,
            username=MQTT_USERNAME or None,
            password=MQTT_PASSWORD or None,
            topic_prefix=MQTT_TOPIC_PREFIX,
            qos=MQTT_QOS,
        )
    if kind == "http":
        return HttpPublisher(HTTP_URL, HTTP_TIMEOUT_S)
    raise ConfigError(f"Unknown publisher: {kind!r} (expected log, mqtt or http)")
