"""
trailmap_service - Discovery service for coordinate batches

Listens for an owner's complete coordinate list over MQTT, recomputes the
regions it discovers, and publishes the result on the owner's topic.

Architecture:
- DiscoveryService: Main orchestrator
- ServiceConfig: Configuration management (YAML)

Threading Model:
- paho-mqtt network threads (subscriber callbacks)
- Main thread (lifecycle, signal handling)
"""

from trailmap_service.config import DatasetConfig, MQTTConfig, OverlayConfig, ServiceConfig
from trailmap_service.service import DiscoveryService

__all__ = [
    "DatasetConfig",
    "MQTTConfig",
    "OverlayConfig",
    "ServiceConfig",
    "DiscoveryService",
]
