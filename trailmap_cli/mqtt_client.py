"""
MQTT client wrapper for sending coordinate batches to the discovery service.

Handles MQTT connection, publishing, and disconnection for one-shot sends.
"""

import json
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt


class MQTTBatchClient:
    """
    One-shot MQTT client for coordinate batches.

    Publishes with QoS 1 and waits for the broker to acknowledge before
    disconnecting.
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None
    ):
        """
        Args:
            broker: MQTT broker host
            port: MQTT broker port
            username: Optional MQTT username
            password: Optional MQTT password
        """
        self.broker = broker
        self.port = port

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        if username and password:
            self.client.username_pw_set(username, password)

    def send_batch(
        self,
        topic: str,
        batch: Dict[str, Any],
        qos: int = 1,
        timeout: float = 10.0
    ) -> None:
        """
        Send a serialized batch to an MQTT topic.

        Args:
            topic: MQTT topic (e.g., "trailmap/discovery_01/coordinates")
            batch: Batch dictionary (will be JSON serialized)
            qos: Quality of Service (default: 1)
            timeout: Seconds to wait for the broker acknowledgement

        Raises:
            ConnectionError: If unable to reach the broker or publish
            ValueError: If batch serialization fails
        """
        try:
            payload = json.dumps(batch)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid batch data: {e}")

        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except OSError as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                f"Is mosquitto running? ({e})"
            )

        self.client.loop_start()
        try:
            result = self.client.publish(topic, payload, qos=qos)
            try:
                result.wait_for_publish(timeout=timeout)
            except (RuntimeError, ValueError) as e:
                raise ConnectionError(f"Failed to publish batch on {topic}: {e}")
            if not result.is_published():
                raise ConnectionError(f"Broker did not acknowledge batch on {topic}")
        finally:
            self.client.disconnect()
            self.client.loop_stop()
