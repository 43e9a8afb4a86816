"""
Region Discovery Aggregator
===========================

Reduces a coordinate collection to the set of regions it touches.

Design:
- DiscoverySet is a value object keyed by region name, never by object
  identity, so sets from independent loads compare equal
- First containing region in dataset order wins (deterministic overlap)
- Per-coordinate failures are recovered locally and logged
- Idempotent and monotonic: more coordinates can only grow the set
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Iterator, List, Optional

from trailmap_region.dataset.loader import BoundaryDataset
from trailmap_region.errors import InvalidCoordinate
from trailmap_region.geometry.classifier import RegionClassifier
from trailmap_region.geometry.shapes import Coordinate, as_coordinate
from trailmap_region.logging import LogEvent, StructuredLogger, create_logger


@dataclass(frozen=True)
class DiscoverySet:
    """
    Immutable set of discovered region identifiers.

    Attributes:
        dataset_name: Dataset the identifiers belong to
        region_ids: Discovered identifiers
        total_regions: Number of regions in the dataset

    Behaves like a read-only set for membership, iteration and size.
    """

    dataset_name: str
    region_ids: FrozenSet[str] = field(default_factory=frozenset)
    total_regions: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'region_ids', frozenset(self.region_ids))
        if self.total_regions < len(self.region_ids):
            raise ValueError(
                f"total_regions ({self.total_regions}) smaller than "
                f"discovered count ({len(self.region_ids)})"
            )

    def __contains__(self, region_id: object) -> bool:
        return region_id in self.region_ids

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.region_ids))

    def __len__(self) -> int:
        return len(self.region_ids)

    def __str__(self) -> str:
        return f"{self.dataset_name}: {len(self)}/{self.total_regions} regions"

    @property
    def is_empty(self) -> bool:
        return not self.region_ids

    @property
    def is_complete(self) -> bool:
        """True when every region of the dataset has been discovered."""
        return self.total_regions > 0 and len(self.region_ids) == self.total_regions

    def issuperset(self, other: "DiscoverySet") -> bool:
        return self.region_ids >= other.region_ids

    def union(self, other: "DiscoverySet") -> "DiscoverySet":
        """Combine two discovery sets over the same dataset."""
        if other.dataset_name != self.dataset_name:
            raise ValueError(
                f"Cannot combine discoveries from '{self.dataset_name}' "
                f"and '{other.dataset_name}'"
            )
        return DiscoverySet(
            dataset_name=self.dataset_name,
            region_ids=self.region_ids | other.region_ids,
            total_regions=max(self.total_regions, other.total_regions),
        )


class RegionDiscoveryAggregator:
    """
    Turns coordinates into a DiscoverySet for one dataset.

    Design Philosophy:
    - Stateless apart from the injected logger
    - Never raises out of its own aggregation loop
    - Safe to call concurrently for the same or different inputs

    Usage:
        aggregator = RegionDiscoveryAggregator()
        discovery = aggregator.discover(coordinates, dataset)
        print(f"{len(discovery)} of {discovery.total_regions} discovered")
    """

    def __init__(self, logger: Optional[StructuredLogger] = None):
        """
        Args:
            logger: Structured logger (default: component "aggregator")
        """
        self.logger = logger or create_logger("aggregator")

    def locate(self, coordinate: Coordinate, dataset: BoundaryDataset) -> Optional[str]:
        """
        Identifier of the first region containing the coordinate.

        Returns:
            Region identifier, or None if no region contains it

        Raises:
            InvalidCoordinate: If the coordinate is NaN or out of range
        """
        RegionClassifier.validate(coordinate)
        for region in dataset.regions:
            if RegionClassifier.contains(coordinate, region):
                return region.region_id
        return None

    def classify(self, coordinates: Iterable, dataset: BoundaryDataset) -> List[Optional[str]]:
        """
        Per-coordinate region match, in input order.

        Args:
            coordinates: Coordinates or (latitude, longitude) pairs
            dataset: Boundary dataset

        Returns:
            One entry per coordinate: region identifier or None
            (None also for rejected coordinates)
        """
        matches: List[Optional[str]] = []
        for index, value in enumerate(coordinates):
            try:
                matches.append(self.locate(as_coordinate(value), dataset))
            except (InvalidCoordinate, TypeError) as e:
                self.logger.warning(
                    event=LogEvent.DISCOVERY_COORDINATE_REJECTED,
                    message="Coordinate treated as matching no region",
                    metadata={
                        'dataset': dataset.name,
                        'index': index,
                        'reason': str(e)
                    }
                )
                matches.append(None)
        return matches

    def discover(self, coordinates: Iterable, dataset: BoundaryDataset) -> DiscoverySet:
        """
        Reduce coordinates to the set of regions they touch.

        Args:
            coordinates: Coordinates or (latitude, longitude) pairs
            dataset: Boundary dataset

        Returns:
            DiscoverySet keyed by region identifier
        """
        matches = self.classify(coordinates, dataset)
        region_ids = frozenset(match for match in matches if match is not None)

        discovery = DiscoverySet(
            dataset_name=dataset.name,
            region_ids=region_ids,
            total_regions=len(dataset),
        )

        self.logger.info(
            event=LogEvent.DISCOVERY_COMPLETED,
            message=f"Discovered {len(discovery)} of {len(dataset)} regions",
            metadata={
                'dataset': dataset.name,
                'coordinate_count': len(matches),
                'unmatched_count': sum(1 for match in matches if match is None),
                'discovered': len(discovery)
            }
        )
        return discovery


def discover(coordinates: Iterable, dataset: BoundaryDataset) -> DiscoverySet:
    """Module-level shortcut using a default aggregator."""
    return RegionDiscoveryAggregator().discover(coordinates, dataset)
