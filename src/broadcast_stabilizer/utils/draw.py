"""Drawing helpers for debug previews and the output HUD.

Nothing here affects mask values or transforms; these functions only
produce pictures of what the pipeline is doing.

Usage from scripts::

    from broadcast_stabilizer.utils.draw import (
        overlay_mask_preview,
        overlay_text_with_outline,
        render_mask_layers,
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import cv2
import numpy as np

# ---------------------------------------------------------------------------
# Colour constants (BGR for OpenCV)
# ---------------------------------------------------------------------------

STATUS_OK_COLOR: tuple[int, int, int] = (0, 255, 0)  # Green
STATUS_FAIL_COLOR: tuple[int, int, int] = (0, 0, 255)  # Red
TEXT_BG_COLOR: tuple[int, int, int] = (0, 0, 0)  # Black outline

# Values above this count as "inside" a layer mask.
_LAYER_THRESHOLD: int = 250


class Tint(Protocol):
    keep: tuple[float, float, float]
    add: tuple[float, float, float]


# ---------------------------------------------------------------------------
# Mask visualisation
# ---------------------------------------------------------------------------


def tint_masked_pixels(image: np.ndarray, mask: np.ndarray, tint: Tint) -> None:
    """Apply ``pixel * keep + add`` per BGR channel where *mask* > 250.

    Mutates *image* in-place.
    """
    selected = mask > _LAYER_THRESHOLD
    if not np.any(selected):
        return
    keep = np.array(tint.keep, dtype=np.float32)
    add = np.array(tint.add, dtype=np.float32)
    tinted = image[selected].astype(np.float32) * keep + add
    image[selected] = np.clip(tinted, 0, 255).astype(np.uint8)


def render_mask_layers(
    frame: np.ndarray,
    layer_masks: Mapping[str, np.ndarray],
    tints: Mapping[str, Tint],
) -> np.ndarray:
    """Return a copy of *frame* with every tinted layer highlighted.

    Layers are tinted in the order of *layer_masks*; layers without an
    entry in *tints* are skipped.
    """
    preview = frame.copy()
    for name, layer_mask in layer_masks.items():
        tint = tints.get(name)
        if tint is not None:
            tint_masked_pixels(preview, layer_mask, tint)
    return preview


def overlay_mask_preview(
    frame: np.ndarray,
    mask: np.ndarray,
    label: str = "MASK DEBUG",
    blend_alpha: float = 0.7,
) -> None:
    """Blend a red-tinted quarter-size *mask* thumbnail into the bottom-right corner.

    *mask* is a uint8 ``(H, W)`` mask.  Mutates *frame* in-place.
    """
    frame_height, frame_width = frame.shape[:2]
    preview_width = frame_width // 4
    preview_height = frame_height // 4
    if preview_width == 0 or preview_height == 0:
        return

    mask_small = cv2.resize(mask, (preview_width, preview_height), interpolation=cv2.INTER_AREA)
    overlay = np.zeros((preview_height, preview_width, 3), dtype=np.uint8)
    overlay[:, :, 2] = mask_small

    x_offset = max(frame_width - preview_width - 10, 0)
    y_offset = max(frame_height - preview_height - 10, 0)
    roi = frame[y_offset : y_offset + preview_height, x_offset : x_offset + preview_width]
    frame[y_offset : y_offset + preview_height, x_offset : x_offset + preview_width] = (
        cv2.addWeighted(roi, 1.0 - blend_alpha, overlay, blend_alpha, 0)
    )

    font_scale = max(0.4, frame_width / 2560.0)
    overlay_text_with_outline(
        frame,
        label,
        (x_offset + 5, y_offset + 20),
        font_scale,
        (255, 255, 255),
        max(1, int(font_scale * 2)),
    )


# ---------------------------------------------------------------------------
# Frame helpers
# ---------------------------------------------------------------------------


def blend_frames(first: np.ndarray, second: np.ndarray, weight: float = 0.5) -> np.ndarray:
    """Return ``first * (1 - weight) + second * weight``.

    With the previous frame and the stabilized current frame this gives a
    quick visual check of the alignment: static content stays sharp.
    """
    if first.shape != second.shape:
        raise ValueError(f"Cannot blend frames of shapes {first.shape} and {second.shape}")
    return cv2.addWeighted(first, 1.0 - weight, second, weight, 0)


# ---------------------------------------------------------------------------
# Text overlay
# ---------------------------------------------------------------------------


def overlay_text_with_outline(
    image: np.ndarray,
    text: str,
    position: tuple[int, int],
    font_scale: float,
    foreground_color: tuple[int, int, int],
    thickness: int = 1,
) -> None:
    """Draw *text* with a black outline for contrast.

    Mutates *image* in-place.
    """
    cv2.putText(
        image,
        text,
        position,
        cv2.FONT_HERSHEY_SIMPLEX,
        font_scale,
        TEXT_BG_COLOR,
        thickness + 2,
        cv2.LINE_AA,
    )
    cv2.putText(
        image,
        text,
        position,
        cv2.FONT_HERSHEY_SIMPLEX,
        font_scale,
        foreground_color,
        thickness,
        cv2.LINE_AA,
    )
