"""Grass segmentation by HSV colour thresholding.

A pure per-pixel classifier: no spatial reasoning, no learned model.

Known limitation: anything whose colour falls inside the grass band
(e.g. a team playing in green) is classified as background.  The mask
builders accept this; it is not corrected here.
"""

from __future__ import annotations

import cv2
import numpy as np

from broadcast_stabilizer.config import HsvRange

GRASS_HSV_RANGE = HsvRange()


def detect_background(frame: np.ndarray, hsv_range: HsvRange = GRASS_HSV_RANGE) -> np.ndarray:
    """Return a uint8 mask that is 255 where *frame* is grass-coloured.

    Parameters
    ----------
    frame : np.ndarray
        ``(H, W, 3)`` uint8 BGR image.
    hsv_range : HsvRange
        Inclusive lower/upper HSV corners of the grass band.

    Returns
    -------
    np.ndarray
        ``(H, W)`` uint8 mask, ``255`` = background, ``0`` = anything else.
    """
    hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
    return cv2.inRange(
        hsv,
        np.array(hsv_range.lower, dtype=np.uint8),
        np.array(hsv_range.upper, dtype=np.uint8),
    )
