"""
Discovery Message Schemas
=========================

Bounded Context: Discovery Data Structures

Messages exchanged with the discovery service over MQTT.

Design:
- CoordinateBatchMessage: an owner's fresh coordinate list (inbound)
- DiscoveryMessage: the owner's discovered regions (outbound)
- Immutable (frozen dataclasses)
- Type-safe serialization/deserialization

Message Flow:
    Memory store → CoordinateBatchMessage → MQTT → DiscoveryService
        → DiscoveryMessage → MQTT → Map / statistics screens
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from trailmap_region.analytics.aggregator import DiscoverySet
from trailmap_region.geometry.shapes import Coordinate
from .common import SCHEMA_VERSION, Timestamp, coordinate_from_dict, coordinate_to_dict


def _parse_coordinates(raw: List[Any]) -> Tuple[Tuple[Coordinate, ...], int]:
    """Parse coordinate entries, returning the good ones and a skip count."""
    coordinates = []
    skipped = 0
    for entry in raw:
        try:
            coordinates.append(coordinate_from_dict(entry))
        except ValueError:
            skipped += 1
    return tuple(coordinates), skipped


@dataclass(frozen=True)
class CoordinateBatchMessage:
    """
    The complete coordinate list of one owner.

    Each batch replaces the previous one; discovery is recomputed from
    scratch, never merged.

    Attributes:
        schema_version: Message schema version (for evolution)
        timestamp: ISO 8601 timestamp of message creation
        owner_id: Whose memories the coordinates come from
        dataset: Boundary dataset to classify against
        coordinates: Memory coordinates, in any order
        cutoff: Only memories up to this day were included (shared maps)
        skipped_coordinates: Unparseable entries dropped by from_dict

    Example:
        >>> msg = CoordinateBatchMessage(
        ...     schema_version="1.0",
        ...     timestamp=Timestamp.now(),
        ...     owner_id="u1",
        ...     dataset="us_states",
        ...     coordinates=[Coordinate(latitude=39.7, longitude=-105.0)]
        ... )
    """
    schema_version: str
    timestamp: Timestamp
    owner_id: str
    dataset: str
    coordinates: Tuple[Coordinate, ...] = field(default_factory=tuple)
    cutoff: Optional[date] = None
    skipped_coordinates: int = field(default=0, compare=False)

    def __post_init__(self):
        if not self.owner_id:
            raise ValueError("owner_id must be non-empty")
        if not self.dataset:
            raise ValueError("dataset must be non-empty")
        object.__setattr__(self, 'coordinates', tuple(self.coordinates))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'owner_id': self.owner_id,
            'dataset': self.dataset,
            'coordinates': [coordinate_to_dict(c) for c in self.coordinates],
            'cutoff': self.cutoff.isoformat() if self.cutoff else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoordinateBatchMessage':
        """Deserialize from dict.

        Coordinate entries that cannot be parsed are dropped one by one
        and counted in skipped_coordinates; the rest of the batch stands.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            raw_coordinates = data.get('coordinates', [])
            if not isinstance(raw_coordinates, list):
                raise ValueError(f"coordinates must be a list, got {type(raw_coordinates).__name__}")

            coordinates, skipped = _parse_coordinates(raw_coordinates)
            cutoff = data.get('cutoff')
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                owner_id=str(data['owner_id']),
                dataset=str(data['dataset']),
                coordinates=coordinates,
                cutoff=date.fromisoformat(cutoff) if cutoff else None,
                skipped_coordinates=skipped
            )
        except KeyError as e:
            raise ValueError(f"Missing required CoordinateBatchMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid CoordinateBatchMessage data: {e}")

    @property
    def coordinate_count(self) -> int:
        return len(self.coordinates)


@dataclass(frozen=True)
class DiscoveryMessage:
    """
    Discovered regions of one owner.

    Attributes:
        schema_version: Message schema version
        timestamp: ISO 8601 timestamp of message creation
        owner_id: Owner the discovery belongs to
        dataset: Dataset the identifiers refer to
        region_ids: Discovered identifiers, sorted
        total: Number of regions in the dataset
        milestones_earned: Titles of earned milestones, in milestone order

    Invariants:
        - region_ids sorted and unique
        - len(region_ids) <= total
    """
    schema_version: str
    timestamp: Timestamp
    owner_id: str
    dataset: str
    region_ids: Tuple[str, ...] = field(default_factory=tuple)
    total: int = 0
    milestones_earned: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'region_ids', tuple(sorted(set(self.region_ids))))
        object.__setattr__(self, 'milestones_earned', tuple(self.milestones_earned))
        if self.total < len(self.region_ids):
            raise ValueError(
                f"total ({self.total}) is less than discovered ({len(self.region_ids)})"
            )

    @classmethod
    def from_discovery(
        cls,
        owner_id: str,
        discovery: DiscoverySet,
        milestones_earned: Sequence[str] = (),
        timestamp: Optional[Timestamp] = None
    ) -> 'DiscoveryMessage':
        return cls(
            schema_version=SCHEMA_VERSION,
            timestamp=timestamp or Timestamp.now(),
            owner_id=owner_id,
            dataset=discovery.dataset_name,
            region_ids=tuple(discovery),
            total=discovery.total_regions,
            milestones_earned=tuple(milestones_earned)
        )

    @property
    def discovered(self) -> int:
        return len(self.region_ids)

    def to_discovery(self) -> DiscoverySet:
        return DiscoverySet(
            dataset_name=self.dataset,
            region_ids=frozenset(self.region_ids),
            total_regions=self.total
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'owner_id': self.owner_id,
            'dataset': self.dataset,
            'region_ids': list(self.region_ids),
            'discovered': self.discovered,
            'total': self.total,
            'milestones_earned': list(self.milestones_earned)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiscoveryMessage':
        """Deserialize from dict.

        A 'discovered' count that disagrees with region_ids is rejected.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            region_ids: List[str] = [str(r) for r in data.get('region_ids', [])]
            message = cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                owner_id=str(data['owner_id']),
                dataset=str(data['dataset']),
                region_ids=tuple(region_ids),
                total=int(data['total']),
                milestones_earned=tuple(str(m) for m in data.get('milestones_earned', []))
            )
            if 'discovered' in data and int(data['discovered']) != message.discovered:
                raise ValueError(
                    f"discovered ({data['discovered']}) does not match "
                    f"{message.discovered} region_ids"
                )
            return message
        except KeyError as e:
            raise ValueError(f"Missing required DiscoveryMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid DiscoveryMessage data: {e}")
