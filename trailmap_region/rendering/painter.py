"""
Mask Painter Module
===================

Reference raster renderer for OverlayMasks.

Design:
- Stateless rendering (pure functions of frame + geometry)
- No discovery logic: executes draw instructions literally
- Equirectangular projection from degrees to pixels
- Uses OpenCV for rasterization, supervision for colors and outlines

Dependencies:
- opencv-python (fillPoly, circle)
- supervision (Color, draw_polygon)
- numpy (arrays)
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np
import supervision as sv

from trailmap_region.dataset.loader import BoundaryDataset
from trailmap_region.geometry.shapes import Coordinate, Ring
from trailmap_region.rendering.mask import FullExtent, OverlayMask


@dataclass(frozen=True)
class FrameProjection:
    """
    Maps lon/lat to pixel coordinates of a frame covering an extent.

    Attributes:
        extent: Geographic rectangle shown by the frame
        resolution_wh: (width, height) of the frame in pixels
    """

    extent: FullExtent
    resolution_wh: Tuple[int, int]

    def __post_init__(self):
        width, height = self.resolution_wh
        if width <= 0 or height <= 0:
            raise ValueError(f"resolution_wh must be positive, got {self.resolution_wh}")

    def project(self, lon_lat: np.ndarray) -> np.ndarray:
        """(N, 2) lon/lat -> (N, 2) float pixel x/y (y grows downwards)."""
        width, height = self.resolution_wh
        points = np.asarray(lon_lat, dtype=np.float64)
        px = (points[:, 0] - self.extent.min_lon) / self.extent.width * width
        py = (self.extent.max_lat - points[:, 1]) / self.extent.height * height
        return np.stack([px, py], axis=1)

    def ring_to_pixels(self, ring: Ring) -> np.ndarray:
        """Ring -> int32 (N, 1, 2) array as cv2.fillPoly expects."""
        return np.round(self.project(ring.vertices)).astype(np.int32).reshape((-1, 1, 2))

    def blank_frame(self) -> np.ndarray:
        width, height = self.resolution_wh
        return np.zeros((height, width, 3), dtype=np.uint8)


class MaskPainter:
    """
    Stateless painter for overlay masks.

    Design Philosophy:
    - SRP: Only draws, doesn't compute discovery
    - Configurable styles
    - Mask style drives the fog color and opacity

    Usage:
        painter = MaskPainter(projection)
        frame = painter.paint(frame, mask)
        frame = painter.draw_region_outlines(frame, dataset)
    """

    def __init__(
        self,
        projection: FrameProjection,
        outline_color: sv.Color = sv.Color(r=255, g=0, b=0),
        pin_color: sv.Color = sv.Color(r=255, g=0, b=0),
        thickness: int = 1,
        pin_radius: int = 4,
    ):
        """
        Args:
            projection: Degree-to-pixel mapping
            outline_color: Color for region outlines
            pin_color: Color for memory pins
            thickness: Outline thickness in pixels
            pin_radius: Pin radius in pixels
        """
        self.projection = projection
        self.outline_color = outline_color
        self.pin_color = pin_color
        self.thickness = thickness
        self.pin_radius = pin_radius

    def coverage(self, mask: OverlayMask) -> np.ndarray:
        """
        Rasterize the mask's painted area.

        Returns:
            Boolean array (height, width), True where fog is painted
        """
        width, height = self.projection.resolution_wh
        layer = np.zeros((height, width), dtype=np.uint8)

        for instruction in mask.instructions:
            cv2.fillPoly(layer, [self.projection.ring_to_pixels(instruction.fill_area)], color=1)
            if instruction.holes:
                cv2.fillPoly(
                    layer,
                    [self.projection.ring_to_pixels(hole) for hole in instruction.holes],
                    color=0,
                )

        return layer.astype(bool)

    def paint(self, frame: np.ndarray, mask: OverlayMask) -> np.ndarray:
        """
        Blend the fog onto a BGR frame.

        Args:
            frame: BGR image matching the projection's resolution
            mask: Overlay mask to execute

        Returns:
            New frame with the fog applied
        """
        width, height = self.projection.resolution_wh
        if frame.shape[:2] != (height, width):
            raise ValueError(
                f"frame shape {frame.shape[:2]} does not match projection {(height, width)}"
            )

        covered = self.coverage(mask)
        result = frame.copy()
        if not covered.any():
            return result

        fog = np.array(sv.Color.from_hex(mask.style.color).as_bgr(), dtype=np.float64)
        alpha = mask.style.opacity
        blended = result[covered].astype(np.float64) * (1.0 - alpha) + fog * alpha
        result[covered] = np.clip(np.round(blended), 0, 255).astype(np.uint8)
        return result

    def draw_region_outlines(
        self,
        frame: np.ndarray,
        dataset: BoundaryDataset,
        region_ids: Optional[Iterable[str]] = None,
    ) -> np.ndarray:
        """
        Outline regions (all of them by default).

        Args:
            frame: BGR image
            dataset: Dataset providing the geometry
            region_ids: Optional subset of identifiers to outline

        Returns:
            Frame with outlines drawn
        """
        wanted = set(region_ids) if region_ids is not None else None
        for region in dataset.regions:
            if wanted is not None and region.region_id not in wanted:
                continue
            for part in region.parts:
                for ring in (part.outer, *part.holes):
                    frame = sv.draw_polygon(
                        scene=frame,
                        polygon=self.projection.ring_to_pixels(ring).reshape((-1, 2)),
                        color=self.outline_color,
                        thickness=self.thickness,
                    )
        return frame

    def draw_pins(self, frame: np.ndarray, coordinates: Iterable[Coordinate]) -> np.ndarray:
        """Draw a filled circle at each memory coordinate."""
        points = [(c.longitude, c.latitude) for c in coordinates]
        if not points:
            return frame

        color = self.pin_color.as_bgr()
        for x, y in np.round(self.projection.project(np.array(points))).astype(int):
            cv2.circle(frame, (int(x), int(y)), self.pin_radius, color, thickness=-1)
        return frame
