"""
Geographic Shapes Module
========================

Pure geometric representations - NO state, NO side effects.

Design:
- Immutable shapes (frozen dataclass pattern)
- Ring vertices stored as read-only (N, 2) arrays of (longitude, latitude),
  i.e. (x, y) in the planar approximation used by the classifier
- Bounding boxes precomputed once at construction
- Thread-safe (immutable)
"""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Coordinate:
    """
    A geographic point in degrees.

    Attributes:
        latitude: North-south position, valid range [-90, 90]
        longitude: East-west position, valid range [-180, 180]

    Construction never fails; range checks happen in the classifier
    so that bad points can be rejected one at a time.
    """

    latitude: float
    longitude: float

    @property
    def xy(self) -> Tuple[float, float]:
        """Planar (x, y) = (longitude, latitude)."""
        return self.longitude, self.latitude

    @classmethod
    def from_lon_lat(cls, pair: Sequence[float]) -> "Coordinate":
        """Build from a GeoJSON-ordered [longitude, latitude] pair."""
        return cls(latitude=float(pair[1]), longitude=float(pair[0]))


def as_coordinate(value) -> Coordinate:
    """
    Accept a Coordinate or a (latitude, longitude) pair.

    Raises:
        TypeError: If value is neither
    """
    if isinstance(value, Coordinate):
        return value
    try:
        latitude, longitude = value
        return Coordinate(latitude=float(latitude), longitude=float(longitude))
    except (TypeError, ValueError):
        raise TypeError(
            f"Expected Coordinate or (latitude, longitude) pair, got {value!r}"
        )


@dataclass(frozen=True, eq=False)
class Ring:
    """
    Immutable, implicitly closed ring of vertices.

    A trailing vertex equal to the first (GeoJSON closes its rings
    explicitly) is dropped so every edge appears once.

    Attributes:
        vertices: Nx2 array of (longitude, latitude) rows, read-only
    """

    vertices: np.ndarray

    def __post_init__(self):
        """Normalize, validate, and freeze the vertex array."""
        vertices = np.array(self.vertices, dtype=np.float64)

        if vertices.ndim != 2 or vertices.shape[1] != 2:
            raise ValueError(f"vertices must be Nx2 array, got shape {vertices.shape}")
        if not np.all(np.isfinite(vertices)):
            raise ValueError("vertices must be finite numbers")

        if len(vertices) > 1 and np.array_equal(vertices[0], vertices[-1]):
            vertices = vertices[:-1]

        if len(np.unique(vertices, axis=0)) < 3:
            raise ValueError(
                f"Ring must have at least 3 distinct vertices, got {len(vertices)}"
            )

        vertices.flags.writeable = False
        object.__setattr__(self, 'vertices', vertices)

        mins = vertices.min(axis=0)
        maxs = vertices.max(axis=0)
        object.__setattr__(
            self, '_bounds',
            (float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))
        )

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) in degrees."""
        return self._bounds

    def __len__(self) -> int:
        return len(self.vertices)

    @classmethod
    def from_lon_lat(cls, positions: Iterable[Sequence[float]]) -> "Ring":
        """Build from GeoJSON positions ([longitude, latitude, ...])."""
        return cls(vertices=np.array([p[:2] for p in positions], dtype=np.float64))


@dataclass(frozen=True)
class Part:
    """
    One polygon of a region: an outer ring and the holes cut out of it.

    Attributes:
        outer: Outer boundary
        holes: Zero or more hole rings
    """

    outer: Ring
    holes: Tuple[Ring, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'holes', tuple(self.holes))

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return self.outer.bounds


@dataclass(frozen=True)
class Region:
    """
    Named geographic area made of one or more disjoint parts.

    Attributes:
        region_id: Stable name (e.g. "Colorado"), the DiscoverySet key
        parts: Polygon parts, at least one
    """

    region_id: str
    parts: Tuple[Part, ...]

    def __post_init__(self):
        if not self.region_id:
            raise ValueError("region_id cannot be empty")
        object.__setattr__(self, 'parts', tuple(self.parts))
        if len(self.parts) == 0:
            raise ValueError(f"Region '{self.region_id}' must have at least one part")

        boxes = np.array([part.bounds for part in self.parts])
        object.__setattr__(
            self, '_bounds',
            (
                float(boxes[:, 0].min()),
                float(boxes[:, 1].min()),
                float(boxes[:, 2].max()),
                float(boxes[:, 3].max()),
            )
        )

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Union of the parts' bounding boxes."""
        return self._bounds

    def __str__(self) -> str:
        return f"{self.region_id} ({len(self.parts)} part(s))"
