"""Relevance masks -- grass segmentation, overlay exclusion, layered composition."""

from broadcast_stabilizer.pipeline.masks.background import detect_background
from broadcast_stabilizer.pipeline.masks.composition import (
    CompositeRule,
    LayeredMasker,
    MaskCompositionResult,
    MaskLayer,
    MorphOp,
    build_singularity_mask,
    build_stabilization_mask,
    singularity_layers,
    stabilization_layers,
)
from broadcast_stabilizer.pipeline.masks.morphology import border_mask, dilate, erode
from broadcast_stabilizer.pipeline.masks.overlay import detect_overlay_panel

__all__ = [
    "CompositeRule",
    "LayeredMasker",
    "MaskCompositionResult",
    "MaskLayer",
    "MorphOp",
    "border_mask",
    "build_singularity_mask",
    "build_stabilization_mask",
    "detect_background",
    "detect_overlay_panel",
    "dilate",
    "erode",
    "singularity_layers",
    "stabilization_layers",
]
