"""
TrailMap MQTT Schemas
=====================

Bounded Context: Data Structures

Immutable, typed data structures for MQTT messages.

Design:
- Frozen dataclasses (immutability)
- to_dict() for JSON serialization
- from_dict() for deserialization (ValueError on bad payloads)
- Schema versioning for evolution

Public API
----------
Common Types:
    Timestamp: ISO 8601 timestamp wrapper
    SCHEMA_VERSION: Current message schema version

Discovery Types:
    CoordinateBatchMessage: An owner's complete coordinate list
    DiscoveryMessage: An owner's discovered regions

Example:
    >>> from trailmap_mqtt.schemas import CoordinateBatchMessage, Timestamp
    >>> from trailmap_region import Coordinate
    >>> msg = CoordinateBatchMessage(
    ...     schema_version="1.0",
    ...     timestamp=Timestamp.now(),
    ...     owner_id="u1",
    ...     dataset="us_states",
    ...     coordinates=[Coordinate(latitude=39.7, longitude=-105.0)]
    ... )
"""

from .common import SCHEMA_VERSION, Timestamp, coordinate_from_dict, coordinate_to_dict
from .discovery import CoordinateBatchMessage, DiscoveryMessage

__all__ = [
    # Common types
    'SCHEMA_VERSION',
    'Timestamp',
    'coordinate_from_dict',
    'coordinate_to_dict',
    # Discovery types
    'CoordinateBatchMessage',
    'DiscoveryMessage',
]
