"""
Rendering Layer
===============

Bounded Context: Fog-of-war overlay geometry and reference drawing.

Responsibilities:
- Build renderer-agnostic overlay masks (mask.py)
- Optionally rasterize masks onto frames (painter.py)

Non-responsibilities:
- Containment logic (handled by geometry)
- Discovery (handled by analytics)

Design:
- Mask building is pure geometry, no pixels
- Painter is one possible renderer among many
"""

from trailmap_region.rendering.mask import (
    FullExtent,
    FillStyle,
    DrawInstruction,
    OverlayMask,
    OverlayMaskBuilder,
)
from trailmap_region.rendering.painter import FrameProjection, MaskPainter

__all__ = [
    "FullExtent",
    "FillStyle",
    "DrawInstruction",
    "OverlayMask",
    "OverlayMaskBuilder",
    "FrameProjection",
    "MaskPainter",
]
