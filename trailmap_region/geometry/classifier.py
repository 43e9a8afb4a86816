"""
Region Classifier Module
========================

Stateless point-in-region logic - applies geometry to coordinates.

Design:
- Pure functions (no state)
- Even-odd ray casting, vectorized over ring edges with numpy
- Bounding-box rejection before any edge math
- Thread-safe (no mutations)

Planar approximation:
    Longitude/latitude are treated as Cartesian x/y. This is adequate for
    state- and country-sized regions away from the poles and the
    antimeridian. Rings that cross the antimeridian or enclose a pole are
    NOT handled and will classify incorrectly.

Edge tie-break (half-open):
    An edge is crossed when it straddles the point's latitude with
    (y_i > y) != (y_j > y) and the point lies strictly west of the
    crossing. A point on a western or southern edge of a ring is therefore
    inside that ring, and a point on an eastern or northern edge is
    outside. Adjacent regions sharing an edge thus never both claim a
    point on it. The same rule applies to hole rings, so a point on the
    western edge of a hole is excluded from the part.
"""

from typing import Iterable

import numpy as np

from trailmap_region.errors import InvalidCoordinate
from trailmap_region.geometry.shapes import Coordinate, Part, Region, Ring


class RegionClassifier:
    """
    Stateless classifier for coordinate-in-region tests.

    Design Philosophy:
    - All methods are static (no instance state)
    - Invalid input fails fast with InvalidCoordinate
    - Callers decide how to recover (see RegionDiscoveryAggregator)
    """

    @staticmethod
    def validate(coordinate: Coordinate) -> None:
        """
        Check a coordinate is usable.

        Raises:
            InvalidCoordinate: If NaN/infinite or out of range
        """
        lat, lon = coordinate.latitude, coordinate.longitude
        if not (np.isfinite(lat) and np.isfinite(lon)):
            raise InvalidCoordinate(lat, lon, "latitude and longitude must be finite")
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinate(lat, lon, "latitude must be in [-90, 90]")
        if not -180.0 <= lon <= 180.0:
            raise InvalidCoordinate(lat, lon, "longitude must be in [-180, 180]")

    @staticmethod
    def ring_contains(ring: Ring, x: float, y: float) -> bool:
        """
        Even-odd ray cast of (x, y) against one ring.

        Args:
            ring: Ring geometry
            x: Longitude
            y: Latitude

        Returns:
            True if the point is inside the ring (half-open, see module doc)
        """
        min_x, min_y, max_x, max_y = ring.bounds
        if x < min_x or x >= max_x or y < min_y or y >= max_y:
            return False

        xi = ring.vertices[:, 0]
        yi = ring.vertices[:, 1]
        xj = np.roll(xi, 1)
        yj = np.roll(yi, 1)

        straddles = (yi > y) != (yj > y)
        # Horizontal edges never straddle, so their division is masked out
        with np.errstate(divide='ignore', invalid='ignore'):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
        crossings = straddles & (x < x_cross)

        return bool(np.count_nonzero(crossings) % 2)

    @staticmethod
    def part_contains(part: Part, x: float, y: float) -> bool:
        """Inside the outer ring and outside every hole."""
        if not RegionClassifier.ring_contains(part.outer, x, y):
            return False
        return not any(RegionClassifier.ring_contains(hole, x, y) for hole in part.holes)

    @staticmethod
    def contains(coordinate: Coordinate, region: Region) -> bool:
        """
        Check if a coordinate lies inside a region.

        Args:
            coordinate: Point to test
            region: Region geometry

        Returns:
            True if inside at least one part (and outside that part's holes)

        Raises:
            InvalidCoordinate: If the coordinate is NaN or out of range
        """
        RegionClassifier.validate(coordinate)
        x, y = coordinate.xy
        return any(RegionClassifier.part_contains(part, x, y) for part in region.parts)

    @staticmethod
    def contains_many(coordinates: Iterable[Coordinate], region: Region) -> np.ndarray:
        """
        Test many coordinates against one region.

        Invalid coordinates are reported as not contained.

        Returns:
            Boolean mask of shape (N,) where True = inside region
        """
        results = []
        for coordinate in coordinates:
            try:
                results.append(RegionClassifier.contains(coordinate, region))
            except InvalidCoordinate:
                results.append(False)
        return np.array(results, dtype=bool)


def contains(coordinate: Coordinate, region: Region) -> bool:
    """Module-level shortcut for RegionClassifier.contains()."""
    return RegionClassifier.contains(coordinate, region)
