"""
MQTT Subscriber
===============

Bounded Context: Message Consumption

Subscriber for coordinate batches sent to the discovery service.

Design:
- Callback-based architecture (messages handled in the MQTT thread)
- Automatic deserialization with error handling
- Malformed payloads are logged and dropped, never raised into paho

Message Flow:
    1. Subscriber receives JSON from MQTT
    2. Deserializes to CoordinateBatchMessage
    3. Invokes user callback with the typed message
    4. Continues listening (non-blocking)

Example:
    >>> from trailmap_mqtt import CoordinateSubscriber
    >>> from trailmap_region.logging import create_logger
    >>>
    >>> def on_batch(batch):
    ...     print(f"{batch.owner_id}: {batch.coordinate_count} coordinates")
    >>>
    >>> subscriber = CoordinateSubscriber(
    ...     broker_host="localhost",
    ...     topic="trailmap/coordinates",
    ...     on_batch=on_batch,
    ...     logger=create_logger("subscriber")
    ... )
    >>> subscriber.connect()
    >>> subscriber.start()
    >>> subscriber.stop()
"""

import json
import threading
from typing import Any, Callable, Dict, Optional

import paho.mqtt.client as mqtt

from trailmap_region.logging import LogEvent, StructuredLogger
from .schemas import CoordinateBatchMessage


class CoordinateSubscriber:
    """
    MQTT subscriber for CoordinateBatchMessages.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        topic: Topic carrying coordinate batches
        client_id: MQTT client identifier
        logger: Structured logger instance
        on_batch: Callback for each valid batch

    Thread Safety:
        Thread-safe via paho-mqtt's loop_start() and threading.Event
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        on_batch: Callable[[CoordinateBatchMessage], None],
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "trailmap_subscriber",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            topic: Topic to subscribe for coordinate batches
            on_batch: Callback invoked with each deserialized batch
            logger: Structured logger instance
            broker_port: MQTT broker port (default: 1883)
            client_id: MQTT client ID
            username: MQTT auth username (optional)
            password: MQTT auth password (optional)
            qos: Quality of Service (default: 1)

        Callbacks are invoked in the MQTT thread.
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.topic = topic
        self.client_id = client_id
        self.logger = logger
        self.qos = qos
        self.on_batch = on_batch

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self._connected = threading.Event()
        self._running = False
        self._stats_lock = threading.Lock()
        self._counts = {'received': 0, 'rejected': 0, 'coordinates_skipped': 0}

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        """Subscribe on every (re)connect."""
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker ({reason_code})",
                metadata={'broker': self.broker}
            )
            return

        self._connected.set()
        client.subscribe(self.topic, qos=self.qos)
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker and subscribed",
            metadata={'broker': self.broker, 'topic': self.topic}
        )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        self.handle_payload(msg.topic, msg.payload)

    def handle_payload(self, topic: str, payload: bytes) -> Optional[CoordinateBatchMessage]:
        """
        Decode, validate and dispatch one payload.

        Returns:
            The batch handed to on_batch, or None if it was dropped
        """
        try:
            data = json.loads(payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._reject(topic, "Failed to decode JSON message", e)
            return None

        if not isinstance(data, dict):
            self._reject(topic, "Batch payload must be a JSON object", None)
            return None

        try:
            batch = CoordinateBatchMessage.from_dict(data)
        except ValueError as e:
            self._reject(topic, "Batch failed schema validation", e, {'data': data})
            return None

        with self._stats_lock:
            self._counts['received'] += 1
            self._counts['coordinates_skipped'] += batch.skipped_coordinates

        self.logger.info(
            event=LogEvent.BATCH_RECEIVED,
            message=f"Received batch of {batch.coordinate_count} coordinates",
            metadata={
                'topic': topic,
                'owner_id': batch.owner_id,
                'dataset': batch.dataset,
                'cutoff': batch.cutoff
            }
        )
        if batch.skipped_coordinates:
            self.logger.warning(
                event=LogEvent.BATCH_COORDINATES_SKIPPED,
                message=f"Dropped {batch.skipped_coordinates} unparseable coordinates",
                metadata={'topic': topic, 'owner_id': batch.owner_id, 'skipped': batch.skipped_coordinates}
            )

        self.on_batch(batch)
        return batch

    def _reject(
        self,
        topic: str,
        message: str,
        error: Optional[BaseException],
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        with self._stats_lock:
            self._counts['rejected'] += 1
        self.logger.error(
            event=LogEvent.DESERIALIZATION_ERROR,
            message=message,
            exc_info=error,
            metadata={'topic': topic, **(metadata or {})}
        )

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker and start the network loop.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            self.client.connect(self.broker_host, self.broker_port)
            self.client.loop_start()

            if self._connected.wait(timeout=timeout):
                return True

            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Connection timeout",
                metadata={'timeout': timeout}
            )
            return False

        except OSError as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

    def start(self) -> None:
        """Mark the subscriber as listening; batches are dispatched as they arrive."""
        if not self._connected.is_set():
            self.logger.warning(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Cannot start: not connected to broker"
            )
            return

        self._running = True
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Subscriber started (listening for batches)",
            metadata={'topic': self.topic}
        )

    def stop(self) -> None:
        self._running = False
        self.client.loop_stop()
        self.client.disconnect()

        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Subscriber stopped",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def is_running(self) -> bool:
        return self._running

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return {
                'batches_received': self._counts['received'],
                'batches_rejected': self._counts['rejected'],
                'coordinates_skipped': self._counts['coordinates_skipped'],
                'connected': self._connected.is_set(),
                'running': self._running,
                'topic': self.topic,
                'broker': self.broker
            }
