"""
Geometry Layer
==============

Bounded Context: Pure geographic shapes and containment queries.

Responsibilities:
- Shape representation (immutable)
- Point-in-region tests (planar ray casting)
- Coordinate validation
- NO state, NO caching, NO rendering

Design Philosophy:
- Pure functions where possible
- Immutable data structures
- Fail-fast validation
- Zero side effects
"""

from trailmap_region.geometry.shapes import Coordinate, Ring, Part, Region, as_coordinate
from trailmap_region.geometry.classifier import RegionClassifier, contains

__all__ = [
    "Coordinate",
    "Ring",
    "Part",
    "Region",
    "as_coordinate",
    "RegionClassifier",
    "contains",
]
