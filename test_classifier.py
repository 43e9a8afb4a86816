"""
Point-in-region classification tests.

Coordinates are built as at(x, y): x is longitude, y is latitude.
"""

import math

import numpy as np
import pytest

from conftest import square
from trailmap_region import Coordinate, InvalidCoordinate, Part, Region, RegionClassifier, Ring, contains


def at(x, y):
    return Coordinate(latitude=y, longitude=x)


def region(region_id, outer, *holes):
    return Region(
        region_id=region_id,
        parts=(Part(outer=Ring.from_lon_lat(outer), holes=tuple(Ring.from_lon_lat(h) for h in holes)),),
    )


def test_triangle_scenario(triangle):
    """Triangle (0,0),(0,10),(10,0): (1,1) inside, (20,20) outside."""
    a = triangle.get("A")

    assert contains(at(1, 1), a) is True
    assert contains(at(20, 20), a) is False


def test_point_beyond_hypotenuse_is_outside(triangle):
    a = triangle.get("A")

    assert contains(at(6, 6), a) is False
    assert contains(at(4, 4), a) is True


def test_hole_excludes_points():
    """Outer 0-10 square with a 4-6 hole."""
    donut = region("D", square(0, 0, 10, 10), square(4, 4, 6, 6))

    assert contains(at(5, 5), donut) is False
    assert contains(at(1, 1), donut) is True


def test_concave_ring():
    u_shape = region("U", [[0, 0], [9, 0], [9, 9], [6, 9], [6, 3], [3, 3], [3, 9], [0, 9], [0, 0]])

    assert contains(at(1, 8), u_shape) is True
    assert contains(at(8, 8), u_shape) is True
    assert contains(at(4.5, 6), u_shape) is False


@pytest.mark.parametrize("x, y, expected", [
    (0, 5, True),     # west edge
    (5, 0, True),     # south edge
    (0, 0, True),     # south-west corner
    (10, 5, False),   # east edge
    (5, 10, False),   # north edge
    (10, 10, False),  # north-east corner
])
def test_edges_are_half_open(x, y, expected):
    box = region("S", square(0, 0, 10, 10))
    assert contains(at(x, y), box) is expected


def test_shared_edge_belongs_to_exactly_one_region():
    west = region("W", square(0, 0, 10, 10))
    east = region("E", square(10, 0, 20, 10))

    on_edge = at(10, 5)
    assert contains(on_edge, west) is False
    assert contains(on_edge, east) is True


def test_hole_edges_follow_the_same_rule():
    donut = region("D", square(0, 0, 10, 10), square(4, 4, 6, 6))

    # West edge of the hole belongs to the hole
    assert contains(at(4, 5), donut) is False
    # East edge of the hole is outside it, so back inside the part
    assert contains(at(6, 5), donut) is True


def test_multipart_region():
    islands = Region(
        region_id="Islands",
        parts=(
            Part(outer=Ring.from_lon_lat(square(0, 0, 2, 2))),
            Part(outer=Ring.from_lon_lat(square(10, 10, 12, 12))),
        ),
    )

    assert contains(at(1, 1), islands) is True
    assert contains(at(11, 11), islands) is True
    assert contains(at(5, 5), islands) is False


@pytest.mark.parametrize("latitude, longitude", [
    (91.0, 0.0),
    (-90.5, 0.0),
    (0.0, 180.5),
    (0.0, -181.0),
    (math.nan, 0.0),
    (0.0, math.inf),
])
def test_invalid_coordinates_raise(latitude, longitude):
    box = region("S", square(-10, -10, 10, 10))

    with pytest.raises(InvalidCoordinate) as excinfo:
        RegionClassifier.contains(Coordinate(latitude=latitude, longitude=longitude), box)

    assert isinstance(excinfo.value, ValueError)


def test_range_limits_are_valid():
    world = region("World", square(-180, -90, 180, 90))

    RegionClassifier.validate(Coordinate(latitude=90.0, longitude=180.0))
    RegionClassifier.validate(Coordinate(latitude=-90.0, longitude=-180.0))
    assert contains(Coordinate(latitude=-90.0, longitude=-180.0), world) is True


def test_contains_many_reports_invalid_as_outside():
    box = region("S", square(0, 0, 10, 10))

    mask = RegionClassifier.contains_many([at(5, 5), Coordinate(latitude=95, longitude=5), at(50, 5)], box)

    np.testing.assert_array_equal(mask, [True, False, False])


def test_ring_drops_closing_vertex_and_is_read_only():
    ring = Ring.from_lon_lat(square(0, 0, 10, 10))

    assert len(ring) == 4
    assert ring.bounds == (0.0, 0.0, 10.0, 10.0)
    with pytest.raises(ValueError):
        ring.vertices[0, 0] = 99.0


def test_ring_needs_three_distinct_vertices():
    with pytest.raises(ValueError):
        Ring.from_lon_lat([[0, 0], [1, 1], [0, 0]])
    with pytest.raises(ValueError):
        Ring.from_lon_lat([[0, 0], [0, 0], [1, 1], [1, 1]])


def test_region_requires_id_and_parts():
    ring = Ring.from_lon_lat(square(0, 0, 1, 1))

    with pytest.raises(ValueError):
        Region(region_id="", parts=(Part(outer=ring),))
    with pytest.raises(ValueError):
        Region(region_id="Empty", parts=())
