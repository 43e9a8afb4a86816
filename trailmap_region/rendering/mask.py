"""
Overlay Mask Builder
====================

Turns a DiscoverySet into renderer-agnostic "fog" geometry.

Output model:
    An OverlayMask is an ordered tuple of DrawInstructions plus a FillStyle.
    A renderer executes each instruction in order:

        1. paint instruction.fill_area with the fill style
        2. clear every ring in instruction.holes

    The first instruction paints the full extent and clears the outer ring
    of every discovered part. Holes of discovered parts (enclaves that do
    not belong to the region) follow as their own instructions, largest
    first, so they stay obscured and any discovered part nested inside
    them is cleared again.

Degenerate cases:
    - empty discovery set: one instruction, full extent, no holes
    - every dataset region discovered: no instructions (zero coverage)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from trailmap_region.analytics.aggregator import DiscoverySet
from trailmap_region.dataset.loader import BoundaryDataset
from trailmap_region.geometry.classifier import RegionClassifier
from trailmap_region.geometry.shapes import Part, Ring
from trailmap_region.logging import LogEvent, StructuredLogger, create_logger


@dataclass(frozen=True)
class FullExtent:
    """
    Rectangle the fog covers, in degrees.

    Attributes:
        min_lon, min_lat, max_lon, max_lat: Rectangle bounds
    """

    min_lon: float = -180.0
    min_lat: float = -90.0
    max_lon: float = 180.0
    max_lat: float = 90.0

    def __post_init__(self):
        if self.min_lon >= self.max_lon or self.min_lat >= self.max_lat:
            raise ValueError(
                f"Extent must have positive width and height, got "
                f"({self.min_lon}, {self.min_lat}, {self.max_lon}, {self.max_lat})"
            )

    @classmethod
    def world(cls) -> "FullExtent":
        return cls()

    @classmethod
    def from_sequence(cls, bounds) -> "FullExtent":
        """Build from [min_lon, min_lat, max_lon, max_lat]."""
        min_lon, min_lat, max_lon, max_lat = (float(v) for v in bounds)
        return cls(min_lon, min_lat, max_lon, max_lat)

    def as_ring(self) -> Ring:
        """Counter-clockwise rectangle ring."""
        return Ring(vertices=np.array([
            [self.min_lon, self.min_lat],
            [self.max_lon, self.min_lat],
            [self.max_lon, self.max_lat],
            [self.min_lon, self.max_lat],
        ]))

    @property
    def width(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat


@dataclass(frozen=True)
class FillStyle:
    """
    How the fog is painted.

    Attributes:
        color: Hex RGB color, e.g. "#000000"
        opacity: Alpha in [0, 1]
    """

    color: str = "#000000"
    opacity: float = 0.75

    def __post_init__(self):
        hex_digits = self.color.lstrip("#")
        if len(hex_digits) != 6 or any(c not in "0123456789abcdefABCDEF" for c in hex_digits):
            raise ValueError(f"color must be a #RRGGBB hex string, got {self.color!r}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"opacity must be in [0.0, 1.0], got {self.opacity}")

    @property
    def rgb(self) -> Tuple[int, int, int]:
        hex_digits = self.color.lstrip("#")
        return (
            int(hex_digits[0:2], 16),
            int(hex_digits[2:4], 16),
            int(hex_digits[4:6], 16),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'color': self.color, 'opacity': self.opacity}


@dataclass(frozen=True)
class DrawInstruction:
    """
    Paint fill_area, then clear each ring in holes.

    Attributes:
        fill_area: Ring to paint
        holes: Rings to clear afterwards
    """

    fill_area: Ring
    holes: Tuple[Ring, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'holes', tuple(self.holes))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize as [longitude, latitude] position lists."""
        return {
            'fill_area': self.fill_area.vertices.tolist(),
            'holes': [hole.vertices.tolist() for hole in self.holes],
        }


@dataclass(frozen=True)
class OverlayMask:
    """
    Renderer-agnostic fog geometry.

    Attributes:
        extent: Area the fog covers before holes are cleared
        style: Fill style
        instructions: Ordered draw instructions
        revealed: Identifiers whose parts were cut out
    """

    extent: FullExtent
    style: FillStyle
    instructions: Tuple[DrawInstruction, ...] = ()
    revealed: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, 'instructions', tuple(self.instructions))
        object.__setattr__(self, 'revealed', frozenset(self.revealed))

    @property
    def is_empty(self) -> bool:
        """True when nothing is painted (zero coverage)."""
        return len(self.instructions) == 0

    @property
    def is_full(self) -> bool:
        """True when the whole extent is painted with no holes."""
        return len(self.instructions) == 1 and not self.instructions[0].holes

    @property
    def hole_count(self) -> int:
        return sum(len(instruction.holes) for instruction in self.instructions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'extent': [self.extent.min_lon, self.extent.min_lat,
                       self.extent.max_lon, self.extent.max_lat],
            'style': self.style.to_dict(),
            'revealed': sorted(self.revealed),
            'instructions': [instruction.to_dict() for instruction in self.instructions],
        }


def ring_area(ring: Ring) -> float:
    """Unsigned planar (shoelace) area in square degrees."""
    x = ring.vertices[:, 0]
    y = ring.vertices[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def interior_point(ring: Ring) -> Tuple[float, float]:
    """
    A point strictly inside the ring, never on its boundary.

    Scans the horizontal line halfway between two neighbouring vertex
    latitudes near the middle of the ring. That line passes through no
    vertex, so its first pair of edge crossings bounds an open interior
    interval whose midpoint is returned.
    """
    x = ring.vertices[:, 0]
    y = ring.vertices[:, 1]
    levels = np.unique(y)
    if len(levels) < 2:
        return float(x.mean()), float(y.mean())

    middle = len(levels) // 2
    scan_y = (levels[middle - 1] + levels[middle]) / 2.0

    xj = np.roll(x, 1)
    yj = np.roll(y, 1)
    crosses = (y > scan_y) != (yj > scan_y)
    hits = np.sort(
        (xj - x)[crosses] * (scan_y - y[crosses]) / (yj - y)[crosses] + x[crosses]
    )
    if len(hits) < 2:
        return float(x.mean()), float(y.mean())
    return float((hits[0] + hits[1]) / 2.0), float(scan_y)


def _inside(inner: Ring, outer: Ring) -> bool:
    ix0, iy0, ix1, iy1 = inner.bounds
    ox0, oy0, ox1, oy1 = outer.bounds
    if ix0 < ox0 or iy0 < oy0 or ix1 > ox1 or iy1 > oy1:
        return False

    # Regions do not overlap: a nested ring's interior lies wholly inside
    # the container, so one interior point decides, clear of edge rules
    return RegionClassifier.ring_contains(outer, *interior_point(inner))


class OverlayMaskBuilder:
    """
    Builds OverlayMasks for one extent and fill style.

    Design Philosophy:
    - SRP: geometry only, no pixels
    - Pure: same inputs, same mask
    - Configurable style

    Usage:
        builder = OverlayMaskBuilder(style=FillStyle("#000000", 0.75))
        mask = builder.build(FullExtent.world(), discovery, dataset)
        for instruction in mask.instructions:
            renderer.fill(instruction.fill_area)
            for hole in instruction.holes:
                renderer.clear(hole)
    """

    def __init__(
        self,
        style: Optional[FillStyle] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            style: Fill style (default: black at 0.75 opacity)
            logger: Structured logger (default: component "mask")
        """
        self.style = style or FillStyle()
        self.logger = logger or create_logger("mask")

    def build(
        self,
        full_extent: FullExtent,
        discovery_set: DiscoverySet,
        dataset: BoundaryDataset,
    ) -> OverlayMask:
        """
        Mask = full_extent minus every part of every discovered region.

        Args:
            full_extent: Area to obscure
            discovery_set: Regions to reveal
            dataset: Dataset the identifiers refer to

        Returns:
            OverlayMask with ordered draw instructions

        Raises:
            ValueError: If discovery_set belongs to another dataset
        """
        if discovery_set.dataset_name != dataset.name:
            raise ValueError(
                f"Discovery set is for '{discovery_set.dataset_name}', "
                f"dataset is '{dataset.name}'"
            )

        discovered_parts: List[Part] = [
            part
            for region in dataset.regions
            if region.region_id in discovery_set
            for part in region.parts
        ]
        revealed = frozenset(r.region_id for r in dataset.regions if r.region_id in discovery_set)

        if len(dataset) > 0 and len(revealed) == len(dataset):
            instructions: Tuple[DrawInstruction, ...] = ()
        elif not discovered_parts:
            instructions = (DrawInstruction(fill_area=full_extent.as_ring()),)
        else:
            instructions = self._cut_out(full_extent, discovered_parts)

        mask = OverlayMask(
            extent=full_extent,
            style=self.style,
            instructions=instructions,
            revealed=revealed,
        )

        self.logger.debug(
            event=LogEvent.MASK_BUILT,
            message=f"Built mask with {len(mask.instructions)} instruction(s)",
            metadata={
                'dataset': dataset.name,
                'revealed': len(revealed),
                'hole_count': mask.hole_count
            }
        )
        return mask

    def _cut_out(self, full_extent: FullExtent, parts: List[Part]) -> Tuple[DrawInstruction, ...]:
        outers = [part.outer for part in parts]
        instructions = [DrawInstruction(fill_area=full_extent.as_ring(), holes=tuple(outers))]

        enclaves = [(part, hole) for part in parts for hole in part.holes]
        # Larger enclaves first so nested ones are painted after their container
        enclaves.sort(key=lambda item: ring_area(item[1]), reverse=True)

        for owner, hole in enclaves:
            nested = tuple(
                part.outer for part in parts
                if part is not owner and _inside(part.outer, hole)
            )
            instructions.append(DrawInstruction(fill_area=hole, holes=nested))

        return tuple(instructions)


def build(full_extent: FullExtent, discovery_set: DiscoverySet, dataset: BoundaryDataset) -> OverlayMask:
    """Module-level shortcut using the default style."""
    return OverlayMaskBuilder().build(full_extent, discovery_set, dataset)
