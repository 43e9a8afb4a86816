"""
Discovery Pipeline Module
=========================

Bounded Context: Orchestration of load -> discover -> mask for the
screens that show discovered regions.

Design:
- Orchestrator: combines loader, aggregator, mask builder, milestones
- Builder pattern: fluent configuration
- Fail fast: dataset name and extent validated at build time
- Three thin call sites share one implementation:
    badge_progress()  statistics / badge screen
    personal_map()    the user's own map
    shared_map()      a contact's map up to a cutoff date

Memory records come from an external store; only the fields needed here
are modelled.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Sequence, Tuple

from trailmap_region.analytics.aggregator import DiscoverySet, RegionDiscoveryAggregator
from trailmap_region.analytics.progress import (
    LOCATION_MILESTONES,
    DiscoveryProgress,
    Milestone,
    MilestoneStatus,
    evaluate_milestones,
)
from trailmap_region.dataset.loader import BoundaryDataset, BoundaryDatasetLoader
from trailmap_region.geometry.shapes import Coordinate
from trailmap_region.rendering.mask import FillStyle, FullExtent, OverlayMask, OverlayMaskBuilder

DEFAULT_DATASET = "us_states"


@dataclass(frozen=True)
class Memory:
    """
    A geotagged memory as delivered by the memory store.

    Attributes:
        memory_id: Store identifier
        owner_id: Owning user
        coordinate: Where it was recorded (None when untagged)
        taken_at: When it was recorded
    """

    memory_id: str
    owner_id: str
    coordinate: Optional[Coordinate] = None
    taken_at: Optional[datetime] = None


def end_of_day(cutoff: date | datetime) -> datetime:
    """Last representable instant of the cutoff's calendar day."""
    if isinstance(cutoff, datetime):
        return datetime.combine(cutoff.date(), time.max, tzinfo=cutoff.tzinfo)
    return datetime.combine(cutoff, time.max)


class MemoryFilter:
    """Selects the coordinates a screen feeds into discovery."""

    @staticmethod
    def _on_or_before(taken_at: datetime, limit: datetime) -> bool:
        # Align naive and aware datetimes on whichever side carries a zone
        if limit.tzinfo is None and taken_at.tzinfo is not None:
            limit = limit.replace(tzinfo=taken_at.tzinfo)
        elif limit.tzinfo is not None and taken_at.tzinfo is None:
            taken_at = taken_at.replace(tzinfo=limit.tzinfo)
        return taken_at <= limit

    @staticmethod
    def coordinates(
        memories: Iterable[Memory],
        owner_id: str,
        cutoff: date | datetime | None = None,
    ) -> List[Coordinate]:
        """
        Coordinates of an owner's memories, optionally up to a cutoff.

        Args:
            memories: Candidate memories
            owner_id: Only memories of this owner are kept
            cutoff: Keep memories dated on or before this day (inclusive
                of the whole day). Undated memories are dropped when a
                cutoff is given.

        Returns:
            Coordinates in input order (untagged memories skipped)
        """
        limit = end_of_day(cutoff) if cutoff is not None else None
        selected = []
        for memory in memories:
            if memory.owner_id != owner_id or memory.coordinate is None:
                continue
            if limit is not None:
                if memory.taken_at is None or not MemoryFilter._on_or_before(memory.taken_at, limit):
                    continue
            selected.append(memory.coordinate)
        return selected


@dataclass(frozen=True)
class DiscoveryResult:
    """
    What a map screen needs: discovered regions and the fog to paint.

    Attributes:
        discovery: Discovered region identifiers
        mask: Overlay mask revealing them
        coordinates: Coordinates that produced the discovery (pins)
    """

    discovery: DiscoverySet
    mask: OverlayMask
    coordinates: Tuple[Coordinate, ...] = ()

    @property
    def progress(self) -> DiscoveryProgress:
        return DiscoveryProgress.from_discovery(self.discovery)


@dataclass(frozen=True)
class BadgeReport:
    """
    What the statistics screen needs.

    Attributes:
        discovery: Discovered region identifiers
        earned: Earned milestones, in milestone order
        not_earned: Remaining milestones with progress text
    """

    discovery: DiscoverySet
    earned: Tuple[MilestoneStatus, ...] = ()
    not_earned: Tuple[MilestoneStatus, ...] = ()

    @property
    def progress(self) -> DiscoveryProgress:
        return DiscoveryProgress.from_discovery(self.discovery)


@dataclass
class DiscoveryPipelineConfig:
    """
    Pipeline configuration.

    All collaborators are injected; build() fills defaults.
    """

    loader: BoundaryDatasetLoader
    dataset_name: str
    extent: FullExtent
    aggregator: RegionDiscoveryAggregator
    mask_builder: OverlayMaskBuilder
    milestones: Tuple[Milestone, ...] = field(default_factory=lambda: LOCATION_MILESTONES)


class DiscoveryPipeline:
    """
    Shared discovery orchestration for all map and statistics screens.

    Usage:
        pipeline = (
            DiscoveryPipelineBuilder()
            .with_datasets_dir("data/boundaries")
            .with_dataset("us_states")
            .build()
        )

        result = pipeline.personal_map(memories, owner_id="u1")
        report = pipeline.badge_progress(memories, owner_id="u1")
        shared = pipeline.shared_map(memories, owner_id="u2", cutoff=date(2024, 5, 1))
    """

    def __init__(self, config: DiscoveryPipelineConfig):
        self.config = config

    @property
    def dataset(self) -> BoundaryDataset:
        """The configured dataset (parsed on first use, then cached)."""
        return self.config.loader.load(self.config.dataset_name)

    def discover(self, coordinates: Iterable) -> DiscoverySet:
        return self.config.aggregator.discover(coordinates, self.dataset)

    def run(self, coordinates: Iterable[Coordinate]) -> DiscoveryResult:
        """
        Discovery + mask for an already filtered coordinate list.

        Raises:
            DatasetNotFound, DatasetMalformed: If the dataset cannot load
        """
        coordinates = tuple(coordinates)
        dataset = self.dataset
        discovery = self.config.aggregator.discover(coordinates, dataset)
        mask = self.config.mask_builder.build(self.config.extent, discovery, dataset)
        return DiscoveryResult(discovery=discovery, mask=mask, coordinates=coordinates)

    def badge_progress(self, memories: Iterable[Memory], owner_id: str) -> BadgeReport:
        """Statistics screen: all of the owner's memories, no mask."""
        coordinates = MemoryFilter.coordinates(memories, owner_id)
        discovery = self.discover(coordinates)
        earned, not_earned = evaluate_milestones(discovery, self.config.milestones)
        return BadgeReport(
            discovery=discovery,
            earned=tuple(earned),
            not_earned=tuple(not_earned),
        )

    def personal_map(self, memories: Iterable[Memory], owner_id: str) -> DiscoveryResult:
        """Personal map: all of the owner's memories."""
        return self.run(MemoryFilter.coordinates(memories, owner_id))

    def shared_map(
        self,
        memories: Iterable[Memory],
        owner_id: str,
        cutoff: date | datetime,
    ) -> DiscoveryResult:
        """Contact map: the owner's memories dated on or before cutoff."""
        return self.run(MemoryFilter.coordinates(memories, owner_id, cutoff=cutoff))


class DiscoveryPipelineBuilder:
    """
    Builder for DiscoveryPipeline.

    Design:
    - Fluent API for construction
    - Fail-fast validation
    - Sensible defaults (world extent, us_states, default style)
    """

    def __init__(self):
        self._loader: BoundaryDatasetLoader | None = None
        self._datasets_dir: str | None = None
        self._dataset_name: str = DEFAULT_DATASET
        self._extent: FullExtent = FullExtent.world()
        self._style: FillStyle | None = None
        self._aggregator: RegionDiscoveryAggregator | None = None
        self._milestones: Tuple[Milestone, ...] = LOCATION_MILESTONES

    def with_loader(self, loader: BoundaryDatasetLoader) -> "DiscoveryPipelineBuilder":
        """Share an existing loader (and its cache)."""
        self._loader = loader
        return self

    def with_datasets_dir(self, datasets_dir: str) -> "DiscoveryPipelineBuilder":
        self._datasets_dir = str(datasets_dir)
        return self

    def with_dataset(self, dataset_name: str) -> "DiscoveryPipelineBuilder":
        self._dataset_name = dataset_name
        return self

    def with_extent(self, extent: FullExtent) -> "DiscoveryPipelineBuilder":
        self._extent = extent
        return self

    def with_style(self, style: FillStyle) -> "DiscoveryPipelineBuilder":
        self._style = style
        return self

    def with_aggregator(self, aggregator: RegionDiscoveryAggregator) -> "DiscoveryPipelineBuilder":
        self._aggregator = aggregator
        return self

    def with_milestones(self, milestones: Sequence[Milestone]) -> "DiscoveryPipelineBuilder":
        self._milestones = tuple(milestones)
        return self

    def build(self) -> DiscoveryPipeline:
        """
        Build the pipeline.

        Raises:
            ValueError: If the configuration is inconsistent
        """
        if not self._dataset_name:
            raise ValueError("Dataset name is required (use .with_dataset())")
        if self._loader is not None and self._datasets_dir is not None:
            raise ValueError("Use either .with_loader() or .with_datasets_dir(), not both")

        loader = self._loader
        if loader is None:
            loader = (
                BoundaryDatasetLoader(self._datasets_dir)
                if self._datasets_dir is not None
                else BoundaryDatasetLoader()
            )

        config = DiscoveryPipelineConfig(
            loader=loader,
            dataset_name=self._dataset_name,
            extent=self._extent,
            aggregator=self._aggregator or RegionDiscoveryAggregator(),
            mask_builder=OverlayMaskBuilder(style=self._style),
            milestones=self._milestones,
        )
        return DiscoveryPipeline(config)
