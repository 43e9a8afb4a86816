"""
Shared pytest fixtures: boundary files written to tmp_path.

Geometry is given as GeoJSON [longitude, latitude] positions.
"""

import json
from types import SimpleNamespace

import pytest

from trailmap_region import BoundaryDatasetLoader


def square(x0, y0, x1, y1):
    """Closed counter-clockwise ring for an axis-aligned rectangle."""
    return [[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]


def polygon_feature(name, *rings, name_key="name"):
    return {
        "type": "Feature",
        "properties": {name_key: name},
        "geometry": {"type": "Polygon", "coordinates": list(rings)},
    }


def multipolygon_feature(name, *polygons):
    return {
        "type": "Feature",
        "properties": {"name": name},
        "geometry": {"type": "MultiPolygon", "coordinates": [list(p) for p in polygons]},
    }


@pytest.fixture
def geojson():
    """Builders for boundary documents."""
    return SimpleNamespace(
        square=square,
        polygon=polygon_feature,
        multipolygon=multipolygon_feature,
    )


@pytest.fixture
def write_dataset(tmp_path):
    """Write a FeatureCollection named <name><suffix> into tmp_path."""
    def _write(name, features, suffix=".json"):
        path = tmp_path / f"{name}{suffix}"
        path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
        return path
    return _write


@pytest.fixture
def loader(tmp_path):
    return BoundaryDatasetLoader(datasets_dir=tmp_path)


@pytest.fixture
def two_squares(write_dataset, loader):
    """A: x 0-10, y 0-10; B: x 20-30, y 0-10."""
    write_dataset("two_squares", [
        polygon_feature("A", square(0, 0, 10, 10)),
        polygon_feature("B", square(20, 0, 30, 10)),
    ])
    return loader.load("two_squares")


@pytest.fixture
def triangle(write_dataset, loader):
    """A: triangle (0,0), (0,10), (10,0)."""
    write_dataset("triangle", [
        polygon_feature("A", [[0, 0], [0, 10], [10, 0], [0, 0]]),
    ])
    return loader.load("triangle")
