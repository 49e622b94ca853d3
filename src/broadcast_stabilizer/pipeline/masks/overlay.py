"""Static scoreboard mask.

The broadcast overlay never moves with the camera, so it must never
contribute to motion estimation.  Its position is a calibration constant
for one camera framing, not something detected from pixels.
"""

from __future__ import annotations

import numpy as np

from broadcast_stabilizer.config import OverlayRegion


def detect_overlay_panel(
    frame: np.ndarray,
    region: OverlayRegion = OverlayRegion(),
    offset: tuple[int, int] = (0, 0),
) -> np.ndarray:
    """Return a mask that is 255 inside the overlay rectangle.

    Parameters
    ----------
    frame : np.ndarray
        Frame whose ``(H, W)`` the mask must match.  Its content is unused.
    region : OverlayRegion
        Rectangle in unbordered frame coordinates.
    offset : tuple[int, int]
        ``(x, y)`` shift applied to the rectangle, e.g. the border offset
        when *frame* has been padded.

    The rectangle is clipped to the frame.
    """
    frame_height, frame_width = frame.shape[:2]
    mask = np.zeros((frame_height, frame_width), dtype=np.uint8)

    left = max(region.left + offset[0], 0)
    top = max(region.top + offset[1], 0)
    right = min(region.left + offset[0] + region.width, frame_width)
    bottom = min(region.top + offset[1] + region.height, frame_height)
    if right > left and bottom > top:
        mask[top:bottom, left:right] = 255
    return mask
