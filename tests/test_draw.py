"""Debug preview helpers."""

import numpy as np
import pytest

from broadcast_stabilizer.pipeline.masks.composition import (
    OVERLAY_TINT,
    LayeredMasker,
    stabilization_layers,
)
from broadcast_stabilizer.utils.draw import (
    blend_frames,
    overlay_mask_preview,
    render_mask_layers,
)


def test_render_mask_layers_tints_only_masked_pixels(grass_frame):
    frame = grass_frame(240, 400)
    masker = LayeredMasker(stabilization_layers())
    result = masker.mask(frame)

    preview = render_mask_layers(frame, result["debug"]["layers"], masker.tints())

    assert preview.shape == frame.shape
    # Overlay: red pushed up, blue/green dimmed (after the field tint).
    overlay_pixel = preview[60, 200]
    assert overlay_pixel[2] > frame[60, 200][2]
    assert overlay_pixel[0] < frame[60, 200][0]
    # The tinted preview never changes the mask itself.
    np.testing.assert_array_equal(result["mask"], masker.mask(frame)["mask"])
    # Source frame untouched.
    assert np.all(frame == frame[0, 0])


def test_render_mask_layers_skips_untinted_layers(grass_frame):
    frame = grass_frame(20, 20)
    mask = np.full((20, 20), 255, dtype=np.uint8)
    preview = render_mask_layers(frame, {"plain": mask}, {"other": OVERLAY_TINT})
    np.testing.assert_array_equal(preview, frame)


def test_blend_frames_average():
    first = np.full((4, 4, 3), 100, dtype=np.uint8)
    second = np.full((4, 4, 3), 200, dtype=np.uint8)
    assert np.all(blend_frames(first, second) == 150)
    with pytest.raises(ValueError):
        blend_frames(first, np.zeros((4, 5, 3), dtype=np.uint8))


def test_overlay_helpers_draw_in_place(grass_frame):
    frame = grass_frame(120, 160)
    before = frame.copy()
    overlay_mask_preview(frame, np.full((120, 160), 255, dtype=np.uint8))
    assert not np.array_equal(frame, before)
    assert frame.shape == before.shape
