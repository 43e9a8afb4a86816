"""
Dataset Layer
=============

Bounded Context: Boundary files and their parsed, cached form.

Responsibilities:
- Resolve dataset names to GeoJSON files
- Parse Polygon / MultiPolygon features into Regions
- Reject malformed input as a whole (no partial datasets)
- Cache each dataset once per process

Design Philosophy:
- Immutable outputs (BoundaryDataset)
- Single-initialization guard per dataset name
"""

from trailmap_region.dataset.loader import (
    BoundaryDataset,
    BoundaryDatasetLoader,
    parse_feature_collection,
    get_default_loader,
    load,
)

__all__ = [
    "BoundaryDataset",
    "BoundaryDatasetLoader",
    "parse_feature_collection",
    "get_default_loader",
    "load",
]
