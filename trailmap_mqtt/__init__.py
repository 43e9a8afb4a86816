"""
TrailMap MQTT Communication Package
===================================

Bounded Context: Communication Protocol for Region Discovery

MQTT-based messaging between the memory store (coordinate batches) and
the discovery service (discovered regions per owner).

Architecture:
- schemas/: Immutable data structures with type safety
- publishers/: Message producers (DiscoveryPublisher)
- subscriber.py: Coordinate batch consumer

Logging is shared with the region core (trailmap_region.logging).

Public API
----------
Schemas:
    Timestamp, CoordinateBatchMessage, DiscoveryMessage

Publishers:
    DiscoveryPublisher
    BasePublisher (for custom publishers)

Subscriber:
    CoordinateSubscriber

Example (service side):
    >>> from trailmap_mqtt import CoordinateSubscriber, DiscoveryPublisher
    >>> from trailmap_region.logging import create_logger
    >>>
    >>> logger = create_logger("service")
    >>> publisher = DiscoveryPublisher(
    ...     broker_host="localhost",
    ...     topic="trailmap/discovery/{owner_id}",
    ...     logger=logger
    ... )
    >>> subscriber = CoordinateSubscriber(
    ...     broker_host="localhost",
    ...     topic="trailmap/coordinates",
    ...     on_batch=handle_batch,
    ...     logger=logger
    ... )
"""

__version__ = "1.0.0"

from .schemas import (
    SCHEMA_VERSION,
    Timestamp,
    CoordinateBatchMessage,
    DiscoveryMessage,
)

from .publishers import (
    BasePublisher,
    DiscoveryPublisher,
)

from .subscriber import CoordinateSubscriber

__all__ = [
    '__version__',
    # Schemas
    'SCHEMA_VERSION',
    'Timestamp',
    'CoordinateBatchMessage',
    'DiscoveryMessage',
    # Publishers
    'BasePublisher',
    'DiscoveryPublisher',
    # Subscriber
    'CoordinateSubscriber',
]
