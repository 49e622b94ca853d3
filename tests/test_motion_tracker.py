"""Camera-motion statistics."""

import math

import numpy as np
import pytest

from broadcast_stabilizer.pipeline.temporal.motion_tracker import MotionTracker


def _transform(tx: float, ty: float, degrees: float = 0.0) -> np.ndarray:
    angle = math.radians(degrees)
    return np.array(
        [
            [math.cos(angle), -math.sin(angle), tx],
            [math.sin(angle), math.cos(angle), ty],
        ]
    )


def test_no_measurements_gives_no_summary():
    tracker = MotionTracker()
    assert tracker.get_summary() is None
    tracker.update(None)
    assert tracker.get_summary() is None
    assert tracker.num_failures == 1


def test_summary_statistics():
    tracker = MotionTracker()
    tracker.update(_transform(3.0, 4.0))
    tracker.update(_transform(0.0, 0.0, degrees=2.0))
    tracker.update(None)

    summary = tracker.get_summary()

    assert summary is not None
    assert summary.num_frames_measured == 2
    assert summary.num_failures == 1
    assert summary.mean_translation_px == pytest.approx(2.5)
    assert summary.max_translation_px == pytest.approx(5.0)
    assert summary.mean_abs_rotation_deg == pytest.approx(1.0)
    assert "2 frames, 1 failures" in summary.to_log_string()


def test_reset_clears_everything():
    tracker = MotionTracker()
    tracker.update(_transform(1.0, 1.0))
    tracker.update(None)
    tracker.reset()
    assert tracker.get_summary() is None
    assert tracker.num_failures == 0
