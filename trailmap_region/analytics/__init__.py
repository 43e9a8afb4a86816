"""
Analytics Layer
===============

Bounded Context: Coordinate aggregation and discovery statistics.

Responsibilities:
- Reduce coordinates to discovered region identifiers
- Progress snapshots ("discovered N of M")
- Milestone (badge) evaluation

Design Philosophy:
- Stateless aggregation, immutable outputs
- Keyed by region name (value equality), never object identity
"""

from trailmap_region.analytics.aggregator import (
    DiscoverySet,
    RegionDiscoveryAggregator,
    discover,
)
from trailmap_region.analytics.progress import (
    DiscoveryProgress,
    Milestone,
    MilestoneStatus,
    LOCATION_MILESTONES,
    evaluate_milestones,
)

__all__ = [
    "DiscoverySet",
    "RegionDiscoveryAggregator",
    "discover",
    "DiscoveryProgress",
    "Milestone",
    "MilestoneStatus",
    "LOCATION_MILESTONES",
    "evaluate_milestones",
]
