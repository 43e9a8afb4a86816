"""
Discovery Publisher
===================

Bounded Context: Discovery Message Production

Design:
- Inherit from BasePublisher (connection management)
- Publishes to one topic per owner

Message Flow:
    DiscoverySet → DiscoveryMessage → DiscoveryPublisher → MQTT Broker

Example:
    >>> from trailmap_mqtt.publishers import DiscoveryPublisher
    >>> from trailmap_region.logging import create_logger
    >>>
    >>> publisher = DiscoveryPublisher(
    ...     broker_host="localhost",
    ...     topic="trailmap/discovery/{owner_id}",
    ...     logger=create_logger("service")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_discovery(message)   # → trailmap/discovery/u1
"""

from typing import Any, Dict, Optional

from trailmap_region.logging import LogEvent, StructuredLogger
from .base import BasePublisher
from ..schemas import DiscoveryMessage


class DiscoveryPublisher(BasePublisher):
    """
    Publisher for DiscoveryMessages.

    The topic may contain an {owner_id} placeholder; each message is
    published on the topic of its owner. Messages are retained so a
    screen that subscribes late still gets the latest discovery.
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "trailmap_discovery_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )

    def topic_for(self, owner_id: str) -> str:
        return self.topic.replace("{owner_id}", owner_id)

    def format_message(self, discovery_msg: DiscoveryMessage) -> Dict[str, Any]:
        return discovery_msg.to_dict()

    def publish_discovery(self, discovery_msg: DiscoveryMessage) -> bool:
        """
        Publish a discovery message on its owner's topic.

        Returns:
            True if published successfully, False otherwise
        """
        topic = self.topic_for(discovery_msg.owner_id)
        success = self.publish(self.format_message(discovery_msg), topic=topic, retain=True)

        if success:
            self.logger.info(
                event=LogEvent.DISCOVERY_PUBLISHED,
                message=f"Published {discovery_msg.discovered} of {discovery_msg.total} regions",
                metadata={
                    'owner_id': discovery_msg.owner_id,
                    'dataset': discovery_msg.dataset,
                    'topic': topic,
                    'milestones_earned': list(discovery_msg.milestones_earned)
                }
            )
        return success

