"""Stabilization -- bordering, conditioning, estimation and warping."""

from broadcast_stabilizer.pipeline.stabilization.conditioning import (
    add_black_border,
    condition_frame,
    crop_border,
)
from broadcast_stabilizer.pipeline.stabilization.estimator import (
    TransformEstimate,
    estimate_rigid_transform,
    warp_affine,
)
from broadcast_stabilizer.pipeline.stabilization.stabilizer import (
    FrameStabilizer,
    StabilizationResult,
    stabilize,
)

__all__ = [
    "FrameStabilizer",
    "StabilizationResult",
    "TransformEstimate",
    "add_black_border",
    "condition_frame",
    "crop_border",
    "estimate_rigid_transform",
    "stabilize",
    "warp_affine",
]
