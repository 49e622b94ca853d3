"""Frame-pair stabilizer.

Given the previous and the current broadcast frame, re-align the current
frame onto the previous one:

1. Border both frames identically.
2. Condition both bordered frames (mask-guided blur of players and
   scoreboard).
3. Estimate the rigid transform between the conditioned frames.
4. Warp the **original** current frame by the inverse transform.

Bordering, masking and blurring only help the estimator; the transform
is always applied to the authentic pixels.

Design notes
------------
- The stabilizer holds no per-video state.  The caller owns the
  reference (previous) frame and passes it in on every call.
- The transform is estimated in bordered coordinates.  Since both frames
  are shifted by the same border offset ``o``, the equivalent transform
  for unbordered frames is ``[A | t + (A - I) o]``.  For a pure
  translation this is the estimate itself.
- "No transform found" is reported as ``transform=None`` and
  ``frame=None``.  Whether to fall back to the unwarped frame or drop it
  is the caller's decision.
"""

from __future__ import annotations

import logging
import time
from typing import Any, TypedDict

import numpy as np

from broadcast_stabilizer.config import StabilizationConfig
from broadcast_stabilizer.pipeline.stabilization.conditioning import (
    add_black_border,
    condition_frame,
)
from broadcast_stabilizer.pipeline.stabilization.estimator import (
    estimate_rigid_transform,
    warp_affine,
)

logger = logging.getLogger(__name__)


class StabilizationResult(TypedDict):
    """Typed dictionary returned by :meth:`FrameStabilizer.stabilize`.

    Attributes
    ----------
    frame : np.ndarray | None
        Current frame re-aligned onto the previous frame, same shape as the
        input; ``None`` when no transform was found.
    transform : np.ndarray | None
        ``(2, 3)`` previous-to-current transform in unbordered frame
        coordinates, or ``None`` when estimation failed.
    debug : dict[str, Any]
        ``tracked`` / ``inliers`` feature counts and ``elapsed_ms``.
    """

    frame: np.ndarray | None
    transform: np.ndarray | None
    debug: dict[str, Any]


def validate_frame_pair(previous_frame: np.ndarray, current_frame: np.ndarray) -> None:
    """Raise ``ValueError`` unless both frames are equal-sized 3-channel uint8 images."""
    for name, frame in (("previous", previous_frame), ("current", current_frame)):
        if frame is None or frame.size == 0:
            raise ValueError(f"{name} frame is empty")
        if frame.ndim != 3 or frame.shape[2] != 3:
            raise ValueError(f"{name} frame must be (H, W, 3), got shape {frame.shape}")
        if frame.dtype != np.uint8:
            raise ValueError(f"{name} frame must be uint8, got {frame.dtype}")
    if previous_frame.shape != current_frame.shape:
        raise ValueError(
            f"Frame size mismatch: previous {previous_frame.shape[1]}x{previous_frame.shape[0]} "
            f"vs current {current_frame.shape[1]}x{current_frame.shape[0]}"
        )


def unborder_transform(transform: np.ndarray, offset: tuple[int, int]) -> np.ndarray:
    """Re-express a transform estimated on bordered frames for unbordered frames."""
    linear = transform[:, :2]
    offset_vector = np.array(offset, dtype=np.float64)
    translation = transform[:, 2] + (linear - np.eye(2)) @ offset_vector
    return np.hstack([linear, translation[:, np.newaxis]])


class FrameStabilizer:
    """Align each current frame onto its predecessor.

    Parameters
    ----------
    config : StabilizationConfig | None
        Border, mask, blur and estimator parameters.  ``None`` uses the
        defaults calibrated for the reference camera framing.
    """

    def __init__(self, config: StabilizationConfig | None = None) -> None:
        self._config = config or StabilizationConfig()

    @property
    def config(self) -> StabilizationConfig:
        return self._config

    def stabilize(
        self, previous_frame: np.ndarray, current_frame: np.ndarray
    ) -> StabilizationResult:
        """Re-align *current_frame* onto *previous_frame*.

        Raises
        ------
        ValueError
            If the frames are empty, not 3-channel uint8, or differ in size.
        """
        validate_frame_pair(previous_frame, current_frame)
        start = time.perf_counter()
        config = self._config

        previous_bordered = add_black_border(
            previous_frame, config.border_width, config.border_height
        )
        current_bordered = add_black_border(
            current_frame, config.border_width, config.border_height
        )
        previous_conditioned = condition_frame(previous_bordered, config)
        current_conditioned = condition_frame(current_bordered, config)

        estimate = estimate_rigid_transform(
            previous_conditioned, current_conditioned, config.estimator
        )
        debug: dict[str, Any] = {
            "tracked": estimate["tracked"],
            "inliers": estimate["inliers"],
        }

        if estimate["matrix"] is None:
            debug["elapsed_ms"] = (time.perf_counter() - start) * 1000.0
            logger.debug("No transform found (tracked=%d)", estimate["tracked"])
            return StabilizationResult(frame=None, transform=None, debug=debug)

        transform = unborder_transform(estimate["matrix"], config.border_offset)
        frame_height, frame_width = current_frame.shape[:2]
        stabilized = warp_affine(current_frame, transform, (frame_width, frame_height))

        debug["elapsed_ms"] = (time.perf_counter() - start) * 1000.0
        return StabilizationResult(frame=stabilized, transform=transform, debug=debug)


def stabilize(
    previous_frame: np.ndarray,
    current_frame: np.ndarray,
    config: StabilizationConfig | None = None,
) -> StabilizationResult:
    """Functional shorthand for ``FrameStabilizer(config).stabilize(...)``."""
    return FrameStabilizer(config).stabilize(previous_frame, current_frame)
