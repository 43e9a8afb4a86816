"""
Common Schema Types
===================

Bounded Context: Shared Data Structures

Types shared by the coordinate batch and discovery messages.

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() for JSON export
- Validation: from_dict() raises ValueError on bad payloads

Types:
- Timestamp: ISO 8601 timestamp wrapper
- coordinate_to_dict / coordinate_from_dict: wire form of a Coordinate
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from trailmap_region.geometry.shapes import Coordinate


SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Attributes:
        value: ISO 8601 formatted timestamp string

    Example:
        >>> ts = Timestamp.now()
        >>> ts.value
        '2026-10-19T15:30:45.123456+00:00'
    """
    value: str

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current UTC time."""
        return cls(value=datetime.now(timezone.utc).isoformat())

    def to_datetime(self) -> datetime:
        """Parse to datetime object.

        Raises:
            ValueError: If timestamp format invalid
        """
        try:
            return datetime.fromisoformat(self.value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value}") from e

    def to_dict(self) -> str:
        """Serialize to JSON (as string)."""
        return self.value


def coordinate_to_dict(coordinate: Coordinate) -> Dict[str, float]:
    return {'latitude': coordinate.latitude, 'longitude': coordinate.longitude}


def coordinate_from_dict(data: Dict[str, Any]) -> Coordinate:
    """Deserialize a {"latitude", "longitude"} object.

    Range is not checked here; out-of-range points travel to the
    aggregator, which rejects them one at a time.

    Raises:
        ValueError: If a key is missing or not numeric
    """
    try:
        return Coordinate(
            latitude=float(data['latitude']),
            longitude=float(data['longitude'])
        )
    except KeyError as e:
        raise ValueError(f"Missing required coordinate field: {e}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid coordinate data: {e}")
