"""Rigid-transform estimation and inverse warping.

The estimator follows the classic sparse pipeline:

1. Shi-Tomasi corners on the previous frame (``cv2.goodFeaturesToTrack``).
2. Pyramidal Lucas-Kanade tracking into the current frame
   (``cv2.calcOpticalFlowPyrLK``).
3. RANSAC fit of a 4-DOF similarity -- rotation, uniform scale,
   translation -- with ``cv2.estimateAffinePartial2D``.

When any stage comes up short the estimate's ``matrix`` is ``None``.  No
identity placeholder is ever returned: warping with a made-up transform
would corrupt the output silently.
"""

from __future__ import annotations

import logging
from typing import TypedDict

import cv2
import numpy as np

from broadcast_stabilizer.config import EstimatorConfig

logger = logging.getLogger(__name__)


class TransformEstimate(TypedDict):
    """Typed dictionary returned by :func:`estimate_rigid_transform`.

    Attributes
    ----------
    matrix : np.ndarray | None
        ``(2, 3)`` float64 affine matrix mapping previous-frame coordinates
        to current-frame coordinates, or ``None`` when no transform was found.
    tracked : int
        Number of corners successfully tracked into the current frame.
    inliers : int
        Number of RANSAC inliers supporting ``matrix`` (``0`` on failure).
    """

    matrix: np.ndarray | None
    tracked: int
    inliers: int


def _to_gray(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return frame
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def estimate_rigid_transform(
    previous_frame: np.ndarray,
    current_frame: np.ndarray,
    config: EstimatorConfig | None = None,
) -> TransformEstimate:
    """Estimate the similarity transform taking *previous_frame* onto *current_frame*.

    Parameters
    ----------
    previous_frame, current_frame : np.ndarray
        Equal-sized uint8 BGR (or grayscale) frames.
    config : EstimatorConfig | None
        Tracking and RANSAC parameters.  ``None`` uses the defaults.

    Returns
    -------
    TransformEstimate
        ``matrix`` is ``None`` when there are too few trackable features
        or RANSAC finds no model.
    """
    config = config or EstimatorConfig()
    if previous_frame.shape != current_frame.shape:
        raise ValueError(
            f"Frame shapes differ: previous {previous_frame.shape} "
            f"vs current {current_frame.shape}"
        )

    previous_gray = _to_gray(previous_frame)
    current_gray = _to_gray(current_frame)

    features = cv2.goodFeaturesToTrack(
        previous_gray,
        maxCorners=config.max_features,
        qualityLevel=config.quality_level,
        minDistance=config.min_distance,
        blockSize=config.block_size,
    )
    if features is None or len(features) < config.min_tracked_features:
        logger.debug(
            "Too few corners to estimate motion (%d < %d)",
            0 if features is None else len(features),
            config.min_tracked_features,
        )
        return TransformEstimate(matrix=None, tracked=0, inliers=0)

    next_points, status, _ = cv2.calcOpticalFlowPyrLK(
        previous_gray,
        current_gray,
        features,
        None,
        winSize=(21, 21),
        maxLevel=3,
        criteria=(cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 30, 0.01),
    )
    is_tracked = status.reshape(-1) == 1
    good_previous = features[is_tracked]
    good_current = next_points[is_tracked]
    tracked_count = int(is_tracked.sum())

    if tracked_count < config.min_tracked_features:
        logger.debug(
            "Too few tracked points (%d < %d)", tracked_count, config.min_tracked_features
        )
        return TransformEstimate(matrix=None, tracked=tracked_count, inliers=0)

    matrix, inliers = cv2.estimateAffinePartial2D(
        good_previous,
        good_current,
        method=cv2.RANSAC,
        ransacReprojThreshold=config.ransac_threshold,
    )
    if matrix is None:
        logger.debug("RANSAC found no similarity model (%d tracked points)", tracked_count)
        return TransformEstimate(matrix=None, tracked=tracked_count, inliers=0)

    inlier_count = int(inliers.sum()) if inliers is not None else 0
    return TransformEstimate(
        matrix=matrix.astype(np.float64),
        tracked=tracked_count,
        inliers=inlier_count,
    )


def warp_affine(frame: np.ndarray, transform: np.ndarray, size: tuple[int, int]) -> np.ndarray:
    """Resample *frame* through the inverse of *transform*.

    Each output pixel ``p`` takes the value of ``frame`` at
    ``transform @ p`` (nearest neighbour), so a frame that moved by
    *transform* is brought back onto the reference frame.

    Parameters
    ----------
    frame : np.ndarray
        Source image.
    transform : np.ndarray
        ``(2, 3)`` affine matrix.
    size : tuple[int, int]
        ``(width, height)`` of the output.
    """
    if transform.shape != (2, 3):
        raise ValueError(f"transform must be 2x3, got {transform.shape}")
    return cv2.warpAffine(
        frame,
        transform,
        size,
        flags=cv2.INTER_NEAREST | cv2.WARP_INVERSE_MAP,
    )
