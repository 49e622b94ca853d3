"""Black-border padding and mask-guided blur conditioning."""

import cv2
import numpy as np
import pytest

from broadcast_stabilizer.pipeline.stabilization.conditioning import (
    add_black_border,
    condition_frame,
    crop_border,
)


def _striped_grass(height: int, width: int) -> np.ndarray:
    """Vertical 4-px stripes of two grass shades."""
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, :] = (30, 120, 30)
    for column in range(0, width, 8):
        frame[:, column : column + 4] = (50, 180, 50)
    return frame


def test_border_shape_and_placement(textured_grass):
    frame = textured_grass(50, 70)
    bordered = add_black_border(frame, 60, 40)

    assert bordered.shape == (90, 130, 3)
    assert bordered.dtype == np.uint8
    np.testing.assert_array_equal(bordered[20:70, 30:100], frame)
    assert not np.any(bordered[:20])
    assert not np.any(bordered[70:])
    assert not np.any(bordered[:, :30])
    assert not np.any(bordered[:, 100:])


@pytest.mark.parametrize("width, height", [(60, 60), (61, 33), (0, 0)])
def test_border_round_trip_is_lossless(textured_grass, width, height):
    frame = textured_grass(48, 64, seed=3)
    restored = crop_border(add_black_border(frame, width, height), width, height)
    np.testing.assert_array_equal(restored, frame)


def test_border_on_single_channel_mask():
    mask = np.full((10, 20), 255, dtype=np.uint8)
    bordered = add_black_border(mask, 6, 4)
    assert bordered.shape == (14, 26)
    assert int(np.count_nonzero(bordered)) == 200


def test_border_rejects_negative_size(textured_grass):
    with pytest.raises(ValueError):
        add_black_border(textured_grass(10, 10), -2, 4)
    with pytest.raises(ValueError):
        crop_border(textured_grass(10, 10), 10, 0)


def test_condition_blurs_overlay_and_keeps_background():
    frame = _striped_grass(240, 400)
    original = frame.copy()

    conditioned = condition_frame(frame, overlay_offset=(0, 0))
    blurred = cv2.blur(frame, (30, 30))

    # Scoreboard rows 40..80, cols 80..370 are replaced by the blurred frame.
    np.testing.assert_array_equal(conditioned[40:80, 80:370], blurred[40:80, 80:370])
    # Far from any excluded region: full detail.
    np.testing.assert_array_equal(conditioned[150:, :], frame[150:, :])
    # Input untouched.
    np.testing.assert_array_equal(frame, original)


def test_condition_feathers_around_excluded_region():
    frame = _striped_grass(240, 400)
    conditioned = condition_frame(frame, overlay_offset=(0, 0))
    blurred = cv2.blur(frame, (30, 30))

    # A few pixels below the scoreboard are still inside the blurred mask.
    np.testing.assert_array_equal(conditioned[85, 100:300], blurred[85, 100:300])


def test_condition_bordered_frame_uses_border_offset():
    frame = _striped_grass(240, 400)
    bordered = add_black_border(frame, 60, 60)

    conditioned = condition_frame(bordered)
    blurred = cv2.blur(bordered, (30, 30))

    # Scoreboard shifted by the 30-px border offset.
    np.testing.assert_array_equal(conditioned[70:110, 110:400], blurred[70:110, 110:400])
    np.testing.assert_array_equal(conditioned[170:220, 100:350], bordered[170:220, 100:350])
