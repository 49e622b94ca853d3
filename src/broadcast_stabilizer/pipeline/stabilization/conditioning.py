"""Pre-estimation frame conditioning.

Two steps prepare a frame for rigid-transform estimation:

1. **Bordering** -- the frame is padded with a black margin so the
   estimator sees uniform context at the image edges.
2. **Mask-guided blur** -- every pixel near an excluded region (players,
   scoreboard) is replaced by a heavily box-blurred version of itself.
   The mask is blurred too, so the transition is feathered: a hard
   cut-out edge would itself look like a trackable feature.

Background pixels far from any excluded region keep full detail.
"""

from __future__ import annotations

import cv2
import numpy as np

from broadcast_stabilizer.config import StabilizationConfig
from broadcast_stabilizer.pipeline.masks.composition import build_stabilization_mask


def add_black_border(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Return *frame* centred in a black canvas ``width`` x ``height`` pixels larger.

    The original frame is placed at ``(width // 2, height // 2)``.  Works
    for ``(H, W, 3)`` frames and ``(H, W)`` masks alike.
    """
    if width < 0 or height < 0:
        raise ValueError(f"border size must be >= 0, got {width}x{height}")
    frame_height, frame_width = frame.shape[:2]
    bordered = np.zeros(
        (frame_height + height, frame_width + width) + frame.shape[2:], dtype=frame.dtype
    )
    x_offset = width // 2
    y_offset = height // 2
    bordered[y_offset : y_offset + frame_height, x_offset : x_offset + frame_width] = frame
    return bordered


def crop_border(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Undo :func:`add_black_border` with the same *width* and *height*."""
    bordered_height, bordered_width = frame.shape[:2]
    if width < 0 or height < 0 or width >= bordered_width or height >= bordered_height:
        raise ValueError(
            f"cannot crop a {width}x{height} border from a "
            f"{bordered_width}x{bordered_height} frame"
        )
    x_offset = width // 2
    y_offset = height // 2
    return frame[
        y_offset : y_offset + bordered_height - height,
        x_offset : x_offset + bordered_width - width,
    ].copy()


def condition_frame(
    frame: np.ndarray,
    config: StabilizationConfig | None = None,
    overlay_offset: tuple[int, int] | None = None,
) -> np.ndarray:
    """Blur away distractor regions of a (bordered) frame.

    Parameters
    ----------
    frame : np.ndarray
        ``(H, W, 3)`` uint8 BGR frame, normally already bordered.
    config : StabilizationConfig | None
        Mask and blur parameters.  ``None`` uses the defaults.
    overlay_offset : tuple[int, int] | None
        Shift of the scoreboard rectangle.  ``None`` assumes *frame* was
        bordered with ``config``'s border size.

    Returns
    -------
    np.ndarray
        New frame; *frame* itself is not modified.
    """
    config = config or StabilizationConfig()
    if overlay_offset is None:
        overlay_offset = config.border_offset

    mask = build_stabilization_mask(frame, config, overlay_offset)
    blur_size = (config.conditioning_blur, config.conditioning_blur)
    blurred_mask = cv2.blur(mask, blur_size)
    blurred_frame = cv2.blur(frame, blur_size)

    return np.where((blurred_mask > 0)[:, :, np.newaxis], blurred_frame, frame)
