"""
Region discovery aggregation tests.

Coordinates are (latitude, longitude); the fixture squares are laid out
along longitude, so at(x, y) reads like the geometry.
"""

import math
from pathlib import Path

import pytest

from trailmap_region import (
    BoundaryDatasetLoader,
    Coordinate,
    DiscoverySet,
    RegionDiscoveryAggregator,
    discover,
)

DATA_DIR = Path(__file__).parent / "data" / "boundaries"


def at(x, y):
    return Coordinate(latitude=y, longitude=x)


@pytest.fixture
def aggregator():
    return RegionDiscoveryAggregator()


def test_triangle_discovery(triangle, aggregator):
    discovery = aggregator.discover([at(1, 1), at(20, 20)], triangle)

    assert discovery.region_ids == {"A"}
    assert discovery.total_regions == 1
    assert discovery.is_complete


def test_two_squares_with_repeat(two_squares, aggregator):
    """[(5,5), (25,5), (5,5)] discovers both squares once each."""
    discovery = aggregator.discover([at(5, 5), at(25, 5), at(5, 5)], two_squares)

    assert discovery.region_ids == {"A", "B"}
    assert len(discovery) == 2
    assert list(discovery) == ["A", "B"]


def test_empty_input(two_squares, aggregator):
    discovery = aggregator.discover([], two_squares)

    assert discovery.is_empty
    assert discovery.total_regions == 2
    assert str(discovery) == "two_squares: 0/2 regions"


def test_points_in_no_region(two_squares, aggregator):
    discovery = aggregator.discover([at(15, 5), at(-50, -50)], two_squares)

    assert discovery.is_empty


def test_idempotent(two_squares, aggregator):
    coordinates = [at(5, 5), at(25, 5)]

    assert aggregator.discover(coordinates, two_squares) == aggregator.discover(coordinates, two_squares)
    assert aggregator.discover(coordinates * 3, two_squares) == aggregator.discover(coordinates, two_squares)


def test_adding_coordinates_never_shrinks(two_squares, aggregator):
    base = [at(5, 5)]
    grown = base + [at(25, 5), at(100, 0)]

    small = aggregator.discover(base, two_squares)
    large = aggregator.discover(grown, two_squares)

    assert large.issuperset(small)
    assert len(large) >= len(small)


def test_invalid_coordinates_are_skipped(two_squares, aggregator):
    coordinates = [
        at(5, 5),
        Coordinate(latitude=91.0, longitude=5.0),
        Coordinate(latitude=math.nan, longitude=25.0),
        "not a coordinate",
        at(25, 5),
    ]

    discovery = aggregator.discover(coordinates, two_squares)

    assert discovery.region_ids == {"A", "B"}


def test_classify_reports_per_coordinate(two_squares, aggregator):
    matches = aggregator.classify(
        [at(5, 5), at(15, 5), Coordinate(latitude=0.0, longitude=200.0), (5.0, 25.0)],
        two_squares,
    )

    assert matches == ["A", None, None, "B"]


def test_overlap_first_match_wins(write_dataset, loader, geojson, aggregator):
    write_dataset("overlap", [
        geojson.polygon("First", geojson.square(0, 0, 10, 10)),
        geojson.polygon("Second", geojson.square(5, 0, 15, 10)),
    ])
    dataset = loader.load("overlap")

    assert aggregator.locate(at(7, 5), dataset) == "First"
    assert aggregator.discover([at(7, 5)], dataset).region_ids == {"First"}
    assert aggregator.discover([at(12, 5)], dataset).region_ids == {"Second"}


def test_sets_from_independent_loads_compare_equal(two_squares, tmp_path):
    reloaded = BoundaryDatasetLoader(tmp_path).load("two_squares")

    assert reloaded is not two_squares
    assert discover([at(5, 5)], reloaded) == discover([at(5, 5)], two_squares)


def test_sample_memories_discover_three_states():
    dataset = BoundaryDatasetLoader(DATA_DIR).load("four_corners")
    coordinates = [
        Coordinate(39.7392, -104.9903),   # Denver
        Coordinate(40.0150, -105.2705),   # Boulder
        Coordinate(40.7608, -111.8910),   # Salt Lake City
        Coordinate(35.0844, -106.6504),   # Albuquerque
    ]

    discovery = discover(coordinates, dataset)

    assert discovery.region_ids == {"Colorado", "Utah", "New Mexico"}
    assert str(discovery) == "four_corners: 3/5 regions"


def test_discovery_set_validation():
    with pytest.raises(ValueError):
        DiscoverySet("d", frozenset({"A", "B"}), total_regions=1)


def test_discovery_set_union():
    left = DiscoverySet("d", {"A"}, total_regions=3)
    right = DiscoverySet("d", {"B"}, total_regions=3)

    combined = left.union(right)

    assert combined.region_ids == {"A", "B"}
    assert "A" in combined and "C" not in combined

    with pytest.raises(ValueError):
        left.union(DiscoverySet("other", {"B"}, total_regions=3))
