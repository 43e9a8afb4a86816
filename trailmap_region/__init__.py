"""
TrailMap Region Discovery
=========================

Bounded Context: Which regions a set of memory coordinates has discovered,
and the fog-of-war overlay that reveals them.

Design Philosophy:
- Separation of Concerns: Dataset, Geometry, Analytics, Rendering separated
- Pure, synchronous core; the only shared state is the dataset cache
- Regions are keyed by name, never by object identity

Architecture:

    trailmap_region/
    ├── dataset/           # Boundary files -> cached, immutable datasets
    │   └── loader.py      # BoundaryDataset, BoundaryDatasetLoader
    │
    ├── geometry/          # Pure geometry (immutable, stateless)
    │   ├── shapes.py      # Coordinate, Ring, Part, Region
    │   └── classifier.py  # RegionClassifier (point-in-region)
    │
    ├── analytics/         # Aggregation and statistics
    │   ├── aggregator.py  # RegionDiscoveryAggregator, DiscoverySet
    │   └── progress.py    # DiscoveryProgress, milestones
    │
    ├── rendering/         # Overlay geometry + reference painter
    │   ├── mask.py        # OverlayMaskBuilder, OverlayMask
    │   └── painter.py     # MaskPainter (OpenCV)
    │
    ├── logging/           # Structured JSON logging
    └── pipeline.py        # Orchestration for the three screens

Usage:

    # 1. Load a dataset (parsed once, cached)
    from trailmap_region import BoundaryDatasetLoader
    loader = BoundaryDatasetLoader(datasets_dir="data/boundaries")
    dataset = loader.load("us_states")

    # 2. Discover (stateless)
    from trailmap_region import Coordinate, RegionDiscoveryAggregator
    discovery = RegionDiscoveryAggregator().discover(
        [Coordinate(latitude=39.7, longitude=-105.0)], dataset
    )

    # 3. Build the overlay (pure geometry)
    from trailmap_region import OverlayMaskBuilder, FullExtent
    mask = OverlayMaskBuilder().build(FullExtent.world(), discovery, dataset)

    # 4. Or use the pipeline (one call per screen)
    from trailmap_region import DiscoveryPipelineBuilder
    pipeline = DiscoveryPipelineBuilder().with_datasets_dir("data/boundaries").build()
    result = pipeline.personal_map(memories, owner_id="u1")
"""

# Errors
from trailmap_region.errors import (
    RegionError,
    DatasetNotFound,
    DatasetMalformed,
    InvalidCoordinate,
)

# Geometry Layer (immutable, stateless)
from trailmap_region.geometry.shapes import Coordinate, Ring, Part, Region
from trailmap_region.geometry.classifier import RegionClassifier, contains

# Dataset Layer (cached)
from trailmap_region.dataset.loader import BoundaryDataset, BoundaryDatasetLoader, load

# Analytics Layer
from trailmap_region.analytics.aggregator import DiscoverySet, RegionDiscoveryAggregator, discover
from trailmap_region.analytics.progress import (
    DiscoveryProgress,
    Milestone,
    MilestoneStatus,
    LOCATION_MILESTONES,
    evaluate_milestones,
)

# Rendering Layer
from trailmap_region.rendering.mask import (
    FullExtent,
    FillStyle,
    DrawInstruction,
    OverlayMask,
    OverlayMaskBuilder,
    build,
)
from trailmap_region.rendering.painter import FrameProjection, MaskPainter

# Pipeline (orchestration)
from trailmap_region.pipeline import (
    Memory,
    MemoryFilter,
    DiscoveryResult,
    BadgeReport,
    DiscoveryPipeline,
    DiscoveryPipelineBuilder,
)

__all__ = [
    # Errors
    "RegionError",
    "DatasetNotFound",
    "DatasetMalformed",
    "InvalidCoordinate",
    # Geometry
    "Coordinate",
    "Ring",
    "Part",
    "Region",
    "RegionClassifier",
    "contains",
    # Dataset
    "BoundaryDataset",
    "BoundaryDatasetLoader",
    "load",
    # Analytics
    "DiscoverySet",
    "RegionDiscoveryAggregator",
    "discover",
    "DiscoveryProgress",
    "Milestone",
    "MilestoneStatus",
    "LOCATION_MILESTONES",
    "evaluate_milestones",
    # Rendering
    "FullExtent",
    "FillStyle",
    "DrawInstruction",
    "OverlayMask",
    "OverlayMaskBuilder",
    "build",
    "FrameProjection",
    "MaskPainter",
    # Pipeline
    "Memory",
    "MemoryFilter",
    "DiscoveryResult",
    "BadgeReport",
    "DiscoveryPipeline",
    "DiscoveryPipelineBuilder",
]

__version__ = "1.0.0"
