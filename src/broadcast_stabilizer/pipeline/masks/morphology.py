"""Binary-mask morphology with square structuring elements.

Deliberately narrower than general morphology: the structuring element
is always an axis-aligned square of side ``2 * radius + 1``.  Both
operations overwrite the mask they are given, which is how the mask
builders refine their locally-owned intermediate masks.
"""

from __future__ import annotations

import cv2
import numpy as np


def _square_kernel(radius: int) -> np.ndarray:
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")
    side = 2 * radius + 1
    return cv2.getStructuringElement(cv2.MORPH_RECT, (side, side), (radius, radius))


def erode(mask: np.ndarray, radius: int) -> None:
    """Shrink relevant regions of *mask* in-place.

    A pixel survives only if its whole ``(2r+1)x(2r+1)`` neighbourhood is
    relevant.  Used to wipe out thin slivers such as painted field lines.
    """
    np.copyto(mask, cv2.erode(mask, _square_kernel(radius)))


def dilate(mask: np.ndarray, radius: int) -> None:
    """Grow relevant regions of *mask* in-place.

    A pixel becomes relevant if any pixel of its ``(2r+1)x(2r+1)``
    neighbourhood is relevant.  Used to close holes and to push an
    exclusion region outwards.
    """
    np.copyto(mask, cv2.dilate(mask, _square_kernel(radius)))


def border_mask(height: int, width: int, border: int) -> np.ndarray:
    """Return a ``(height, width)`` mask that is 255 on a band around every edge.

    Parameters
    ----------
    height, width : int
        Mask dimensions.
    border : int
        Band thickness in pixels.  The ``(height - 2*border) x
        (width - 2*border)`` interior is 0.

    Raises
    ------
    ValueError
        If the band would leave no interior.
    """
    if border < 0:
        raise ValueError(f"border must be >= 0, got {border}")
    if height <= 2 * border or width <= 2 * border:
        raise ValueError(
            f"border {border} leaves no interior in a {width}x{height} mask"
        )
    mask = np.full((height, width), 255, dtype=np.uint8)
    mask[border : height - border, border : width - border] = 0
    return mask
